from __future__ import annotations

import logging
import sys
from pathlib import Path

from xvfbctl.core.utils.io import ensure_directory

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "xvfbctl: %(levelname)s %(message)s"

_CONFIGURED_LOG_PATH: str | None = None
_FILE_HANDLER: logging.Handler | None = None
_CONSOLE_HANDLER: logging.Handler | None = None


def _level_from_name(name: str | int) -> int:
    if isinstance(name, int):
        return name
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.INFO


def _lower_root_level(level: int) -> None:
    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def configure_console_logging(verbosity: int = 0) -> logging.Handler:
    """Install (or replace) the stderr handler used by the CLI.

    ``verbosity`` 0 shows warnings, 1 adds info, 2 or more adds debug output.
    """
    global _CONSOLE_HANDLER

    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    root = logging.getLogger()
    if _CONSOLE_HANDLER is not None:
        root.removeHandler(_CONSOLE_HANDLER)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(handler)
    _lower_root_level(level)

    _CONSOLE_HANDLER = handler
    return handler


def configure_stdlib_logging(*, log_path: Path, level: str | int = "INFO") -> None:
    """Send stdlib logging to ``log_path`` in addition to any console handler.

    Idempotent per-process: if already configured for the same file, no-op.
    """
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _FILE_HANDLER is not None:
        return

    ensure_directory(Path(resolved).parent)
    root = logging.getLogger()

    # Replace the previously installed file handler when switching paths.
    if _FILE_HANDLER is not None:
        root.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None

    numeric = _level_from_name(level)
    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(numeric)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)
    _lower_root_level(numeric)

    _FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by this module."""
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER, _CONSOLE_HANDLER
    root = logging.getLogger()
    for h in (_FILE_HANDLER, _CONSOLE_HANDLER):
        if h is None:
            continue
        root.removeHandler(h)
        h.close()
    _CONFIGURED_LOG_PATH = None
    _FILE_HANDLER = None
    _CONSOLE_HANDLER = None


__all__ = [
    "LOG_FORMAT",
    "configure_console_logging",
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
]
