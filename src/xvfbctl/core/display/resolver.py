"""Display selection: an explicit display, or a bounded search for a free one."""
from __future__ import annotations

import logging
import socket
from pathlib import Path
from typing import Any

from xvfbctl.core.exceptions import DisplayInUseError, NoDisplayAvailableError
from xvfbctl.core.process import is_process_alive

from .models import DisplayIdentifier, Reservation, XvfbSettings
from .reservation import create_lockfile, lockfile_path

logger = logging.getLogger(__name__)

MAX_PORT = 65535


def decode_display_port(display: Any, port_base: int = 6000) -> int:
    """Return the TCP port of ``display`` (the screen suffix is ignored)."""
    return DisplayIdentifier.parse(display).port_for(port_base)


def x_lock_path(x_lock_dir: str | Path, display_number: int) -> Path:
    return Path(x_lock_dir) / f".X{display_number}-lock"


def x_lock_held(x_lock_dir: str | Path | None, display_number: int) -> bool:
    """True when an X server lock for ``display_number`` names a live process.

    X servers started with ``-nolisten tcp`` never bind their TCP port; their
    lock file is the only trace they leave.
    """
    if not x_lock_dir:
        return False
    path = x_lock_path(x_lock_dir, display_number)
    try:
        raw = path.read_text(encoding="ascii", errors="replace").strip()
    except OSError:
        return False
    try:
        pid = int(raw)
    except ValueError:
        return False
    return is_process_alive(pid)


def _port_answers(port: int, timeout_seconds: float) -> bool:
    try:
        with socket.create_connection(("localhost", port), timeout=timeout_seconds):
            return True
    except (OSError, OverflowError):
        # Refused, unknown host, timeouts and out-of-range ports all mean "not active".
        return False


def is_display_active(
    display: Any,
    *,
    port_base: int = 6000,
    timeout_seconds: float = 1.0,
    x_lock_dir: str | Path | None = None,
) -> bool:
    """Return True if something already serves ``display``.

    Raises:
        InvalidDisplayFormatError: ``display`` is not ``[host]:number[.screen]``.
    """
    ident = DisplayIdentifier.parse(display)
    if _port_answers(ident.port_for(port_base), timeout_seconds):
        return True
    return x_lock_held(x_lock_dir, ident.number)


def _bind_and_reserve(settings: XvfbSettings, port: int, display_number: int) -> Reservation:
    # Holding the listening socket while the lockfile is created keeps other
    # binders out for that moment; it is closed before the server starts.
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("", port))
        sock.listen(1)
        return create_lockfile(settings, port, display_number)


def reserve_display(settings: XvfbSettings) -> tuple[DisplayIdentifier, Reservation]:
    """Search ``settings.search_numbers`` for a free display and reserve it.

    Raises:
        NoDisplayAvailableError: With reason ``retry_disabled`` on the first
            conflict when retrying is off, else ``range_exhausted``.
    """
    numbers = settings.search_numbers
    for number in numbers:
        port = settings.port_base + number
        if port > MAX_PORT:
            logger.debug("Display :%s skipped: port %s is out of range", number, port)
            break

        if lockfile_path(settings, port).exists():
            logger.debug("Display :%s skipped: port %s is reserved by a lockfile", number, port)
            continue
        if x_lock_held(settings.x_lock_dir, number):
            logger.debug("Display :%s skipped: X server lock is held", number)
            continue

        try:
            reservation = _bind_and_reserve(settings, port, number)
        except OSError as exc:
            if not settings.retry_on_conflict:
                raise NoDisplayAvailableError(
                    f"Display :{number} (port {port}) is unavailable and retry is disabled: {exc}",
                    reason=NoDisplayAvailableError.RETRY_DISABLED,
                    context={"display": number, "port": port},
                ) from exc
            logger.info("Display :%s (port %s) unavailable, trying next: %s", number, port, exc)
            continue

        return DisplayIdentifier.for_number(number), reservation

    raise NoDisplayAvailableError(
        f"No free display between :{numbers.start} and :{numbers.stop - 1} "
        f"(ports {settings.port_base + numbers.start}-{settings.port_base + numbers.stop - 1})",
        reason=NoDisplayAvailableError.RANGE_EXHAUSTED,
        context={"first": numbers.start, "last": numbers.stop - 1},
    )


def resolve_display(
    settings: XvfbSettings,
    *,
    explicit: Any = None,
) -> tuple[DisplayIdentifier, Reservation | None]:
    """Pick the display for a run.

    An explicit display (argument, else ``settings.display``) is used as-is
    after checking nothing serves it; no reservation is taken for it.
    """
    requested = explicit if explicit is not None else settings.display
    if requested is not None:
        ident = DisplayIdentifier.parse(requested)
        if is_display_active(
            ident,
            port_base=settings.port_base,
            timeout_seconds=settings.probe_timeout_seconds,
            x_lock_dir=settings.x_lock_dir,
        ):
            raise DisplayInUseError(
                f"Display {ident} is already in use (port {ident.port_for(settings.port_base)})",
                context={"display": str(ident), "port": ident.port_for(settings.port_base)},
            )
        return ident, None

    return reserve_display(settings)


__all__ = [
    "MAX_PORT",
    "decode_display_port",
    "x_lock_path",
    "x_lock_held",
    "is_display_active",
    "reserve_display",
    "resolve_display",
]
