"""Session state file: hands a running display from ``run`` to a later ``stop``."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from xvfbctl.core.exceptions import InvalidDisplayFormatError, SessionStateError
from xvfbctl.core.utils.io import read_yaml, write_yaml

from .models import DisplayIdentifier, Reservation, XvfbServerHandle, XvfbSession

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def session_to_state(session: XvfbSession) -> dict[str, Any]:
    server = session.server
    reservation = session.reservation
    return {
        "version": STATE_VERSION,
        "display": str(session.display),
        "pid": server.pid if server else None,
        "create_time": server.create_time if server else None,
        "command": list(server.argv) if server else [],
        "port": reservation.port if reservation else None,
        "lockfile": str(reservation.lockfile) if reservation else None,
        "properties": dict(session.properties),
        "started_at": session.started_at or utc_timestamp(),
    }


def session_from_state(data: Any) -> XvfbSession:
    if not isinstance(data, dict):
        raise SessionStateError("Session state must be a mapping")
    try:
        display = DisplayIdentifier.parse(data.get("display"))
    except InvalidDisplayFormatError as exc:
        raise SessionStateError(f"Session state has an invalid display: {exc}") from exc

    server: XvfbServerHandle | None = None
    pid = data.get("pid")
    if pid is not None:
        try:
            create_time = data.get("create_time")
            server = XvfbServerHandle(
                pid=int(pid),
                argv=tuple(str(a) for a in data.get("command") or ()),
                create_time=float(create_time) if create_time is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise SessionStateError(f"Session state has an invalid pid: {exc}") from exc

    reservation: Reservation | None = None
    lockfile = data.get("lockfile")
    if lockfile:
        try:
            port = int(data.get("port"))
        except (TypeError, ValueError) as exc:
            raise SessionStateError(f"Session state has an invalid port: {exc}") from exc
        reservation = Reservation(port=port, display_number=display.number, lockfile=Path(lockfile))

    properties = data.get("properties") or {}
    if not isinstance(properties, dict):
        raise SessionStateError("Session state 'properties' must be a mapping")

    return XvfbSession(
        display=display,
        reservation=reservation,
        server=server,
        properties={str(k): str(v) for k, v in properties.items()},
        started_at=data.get("started_at"),
    )


def save_session(session: XvfbSession, path: Path) -> None:
    write_yaml(Path(path), session_to_state(session))
    logger.debug("Saved session state to %s", path)


def load_session(path: Path) -> XvfbSession | None:
    """Return the recorded session, or None when no state file exists.

    Raises:
        SessionStateError: The file exists but cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = read_yaml(path, default=None, raise_on_error=True)
    except (OSError, yaml.YAMLError) as exc:
        raise SessionStateError(f"Cannot read session state {path}: {exc}", context={"path": str(path)}) from exc
    if data is None:
        return None
    return session_from_state(data)


def clear_session(path: Path) -> bool:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    return True


__all__ = [
    "STATE_VERSION",
    "utc_timestamp",
    "session_to_state",
    "session_from_state",
    "save_session",
    "load_session",
    "clear_session",
]
