"""Spawning the display server process."""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import IO, Any

from xvfbctl.core.exceptions import LaunchFailedError
from xvfbctl.core.process import process_create_time

from .models import OUTPUT_DEVNULL, OUTPUT_INHERIT, DisplayIdentifier, XvfbServerHandle, XvfbSettings

logger = logging.getLogger(__name__)


def _popen_kwargs() -> dict[str, Any]:
    # Own process group so teardown can signal the server and its children together.
    if os.name == "posix":
        return {"start_new_session": True}
    return {}


def split_arg_line(arg_line: str | None) -> list[str]:
    """Split a shell-style argument string (POSIX quoting rules)."""
    if not arg_line or not arg_line.strip():
        return []
    return shlex.split(arg_line)


def build_command(display: DisplayIdentifier | str, settings: XvfbSettings) -> list[str]:
    argv = [settings.binary, str(display)]
    argv.extend(settings.args)
    argv.extend(split_arg_line(settings.arg_line))
    if settings.fbdir:
        argv.extend(["-fbdir", str(Path(settings.fbdir).expanduser())])
    return argv


def _open_output(output: str) -> tuple[Any, IO[Any] | None]:
    """Return the ``stdout``/``stderr`` target and the stream to close later."""
    if output == OUTPUT_INHERIT:
        return None, None
    if output == OUTPUT_DEVNULL:
        return subprocess.DEVNULL, None
    path = Path(output).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    stream = open(path, "ab")
    return stream, stream


def launch(display: DisplayIdentifier | str, settings: XvfbSettings) -> XvfbServerHandle:
    """Start the server for ``display``; no readiness wait is performed.

    Raises:
        LaunchFailedError: The binary is missing, not executable, or the
            framebuffer directory / output file cannot be prepared.
    """
    argv = build_command(display, settings)

    try:
        if settings.fbdir:
            Path(settings.fbdir).expanduser().mkdir(parents=True, exist_ok=True)
        target, stream = _open_output(settings.output)
    except OSError as exc:
        raise LaunchFailedError(
            f"Could not prepare Xvfb launch: {exc}", context={"argv": argv}
        ) from exc

    logger.info("Starting %s", shlex.join(argv))
    try:
        proc = subprocess.Popen(  # noqa: S603
            argv,
            stdin=subprocess.DEVNULL,
            stdout=target,
            stderr=target,
            **_popen_kwargs(),
        )
    except OSError as exc:
        if stream is not None:
            stream.close()
        raise LaunchFailedError(
            f"Could not start {settings.binary}: {exc}",
            context={"argv": argv, "binary": settings.binary},
        ) from exc

    return XvfbServerHandle(
        pid=proc.pid,
        argv=tuple(argv),
        create_time=process_create_time(proc.pid),
        process=proc,
        output_stream=stream,
    )


__all__ = ["split_arg_line", "build_command", "launch"]
