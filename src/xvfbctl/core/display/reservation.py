"""Display reservation lockfiles.

A reservation is a lockfile named ``<lock_prefix><port>`` in the lock
directory. Creation is create-if-absent (``O_EXCL``); the file body is a small
JSON document naming the owning pid, its creation time and, once launched,
the server pid. The lockfile is advisory: it narrows but does not close the
window between probing a port and the server binding it.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from xvfbctl.core.utils.io import atomic_write, ensure_directory

from .models import Reservation, XvfbSettings

logger = logging.getLogger(__name__)


def lockfile_path(settings: XvfbSettings, port: int) -> Path:
    return settings.resolved_lock_dir / f"{settings.lock_prefix}{port}"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def create_lockfile(settings: XvfbSettings, port: int, display_number: int) -> Reservation:
    """Create the lockfile for ``port``.

    Raises:
        FileExistsError: Another process reserved the port first.
        OSError: The lock directory is not writable.
    """
    path = lockfile_path(settings, port)
    ensure_directory(path.parent)

    fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(
            {
                "pid": os.getpid(),
                "port": port,
                "display": display_number,
                "created_at": _utc_now(),
            },
            f,
        )
    logger.debug("Reserved display :%s (port %s) via %s", display_number, port, path)
    return Reservation(port=port, display_number=display_number, lockfile=path)


def read_lockfile(path: Path) -> dict[str, Any] | None:
    """Return the lockfile metadata, or None for a missing or unparseable file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        data = json.loads(raw) if raw.strip() else None
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def record_server(reservation: Reservation, server_pid: int) -> None:
    """Add the launched server's pid to the lockfile metadata."""
    data = read_lockfile(reservation.lockfile) or {}
    data["server_pid"] = int(server_pid)
    try:
        atomic_write(reservation.lockfile, lambda f: json.dump(data, f))
    except OSError as exc:
        logger.warning("Could not update lockfile %s: %s", reservation.lockfile, exc)


def release(reservation: Reservation | None) -> None:
    """Delete the reservation lockfile; a missing file is not an error."""
    if reservation is None:
        return
    try:
        reservation.lockfile.unlink()
        logger.debug("Released reservation %s", reservation.lockfile)
    except FileNotFoundError:
        pass


__all__ = ["lockfile_path", "create_lockfile", "read_lockfile", "record_server", "release"]
