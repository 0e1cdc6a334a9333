from __future__ import annotations

import re
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from xvfbctl.core.exceptions import InvalidDisplayFormatError

# [host]:number[.screen]; the host part may be empty and never contains ':'.
_DISPLAY_RE = re.compile(r"(?P<host>[^:]*):(?P<number>\d+)(?:\.(?P<screen>\d+))?")

OUTPUT_INHERIT = "inherit"
OUTPUT_DEVNULL = "devnull"


@dataclass(frozen=True)
class DisplayIdentifier:
    """An X display name such as ``:20``, ``localhost:20`` or ``:20.1``."""

    number: int
    host: str = ""
    screen: int | None = None

    @classmethod
    def parse(cls, value: Any) -> DisplayIdentifier:
        if isinstance(value, DisplayIdentifier):
            return value
        text = str(value or "").strip()
        match = _DISPLAY_RE.fullmatch(text)
        if match is None:
            raise InvalidDisplayFormatError(
                f"Invalid display '{text}': expected [host]:number[.screen]",
                context={"display": text},
            )
        screen = match.group("screen")
        return cls(
            number=int(match.group("number")),
            host=match.group("host"),
            screen=int(screen) if screen is not None else None,
        )

    @classmethod
    def for_number(cls, number: int) -> DisplayIdentifier:
        if number < 0:
            raise InvalidDisplayFormatError(
                f"Display number must be >= 0, got {number}", context={"number": number}
            )
        return cls(number=number)

    def port_for(self, port_base: int) -> int:
        return port_base + self.number

    def __str__(self) -> str:
        text = f"{self.host}:{self.number}"
        if self.screen is not None:
            text += f".{self.screen}"
        return text


@dataclass(frozen=True)
class Reservation:
    """A display port claimed through a lockfile at ``lockfile``."""

    port: int
    display_number: int
    lockfile: Path


_LEGACY_XVFB_KEY_HINTS: dict[str, str] = {
    "xvfbBinary": "xvfb.binary",
    "xvfbArgs": "xvfb.args",
    "xvfbArgLine": "xvfb.arg_line",
    "xDisplayPortBase": "xvfb.port_base",
    "xDisplayDefaultNumber": "xvfb.default_display_number",
    "maxDisplaysToSearch": "xvfb.max_displays_to_search",
    "doRetry": "xvfb.retry_on_conflict",
    "setDisplayMavenProp": "xvfb.set_build_property",
    "displayMavenProp": "xvfb.build_property",
    "setDisplayEnvVar": "xvfb.set_environment",
    "lockFilePrefix": "xvfb.lock_prefix",
}


def _raise_on_legacy_keys(raw: dict[str, Any]) -> None:
    found: list[str] = []
    for key in _LEGACY_XVFB_KEY_HINTS.keys():
        if key not in raw:
            continue
        val = raw.get(key)
        if val is None:
            continue
        if isinstance(val, str) and not val.strip():
            continue
        found.append(key)

    if not found:
        return

    hints = ", ".join(f"{k} → {_LEGACY_XVFB_KEY_HINTS[k]}" for k in found)
    raise ValueError(f"Unsupported legacy xvfb keys: {hints}")


def _as_int(
    raw: dict[str, Any], key: str, default: int, *, minimum: int = 0, maximum: int | None = None
) -> int:
    v = raw.get(key)
    if v is None:
        return default
    if isinstance(v, bool):
        raise ValueError(f"xvfb.{key} must be an integer, got {v!r}")
    try:
        value = int(v)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"xvfb.{key} must be an integer, got {v!r}") from exc
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ValueError(f"xvfb.{key} must be {bounds}, got {value}")
    return value


def _as_float(raw: dict[str, Any], key: str, default: float) -> float:
    v = raw.get(key)
    if v is None:
        return default
    if isinstance(v, bool):
        raise ValueError(f"xvfb.{key} must be a number, got {v!r}")
    try:
        value = float(v)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"xvfb.{key} must be a number, got {v!r}") from exc
    if value <= 0:
        raise ValueError(f"xvfb.{key} must be greater than 0, got {value}")
    return value


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "on"}
    return bool(v)


def _as_optional_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


@dataclass(frozen=True)
class XvfbSettings:
    """Resolved options for one virtual display run."""

    display: str | None = None
    binary: str = "Xvfb"
    args: tuple[str, ...] = ()
    arg_line: str | None = None
    fbdir: str | None = None
    port_base: int = 6000
    default_display_number: int = 20
    max_displays_to_search: int = 10
    retry_on_conflict: bool = True
    set_build_property: bool = True
    build_property: str = "xvfb.display"
    set_environment: bool = False
    lock_dir: str | None = None
    lock_prefix: str = ".xvfbctl_display"
    x_lock_dir: str | None = "/tmp"
    output: str = OUTPUT_INHERIT
    shutdown_timeout_seconds: float = 5.0
    probe_timeout_seconds: float = 1.0

    @classmethod
    def from_raw(cls, raw: Any) -> XvfbSettings:
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ValueError(f"xvfb configuration must be a mapping, got {type(raw).__name__}")

        _raise_on_legacy_keys(raw)
        defaults = cls()

        args_raw = raw.get("args") or []
        if isinstance(args_raw, (str, bytes)) or not isinstance(args_raw, (list, tuple)):
            raise ValueError("xvfb.args must be a list of strings")

        display = _as_optional_str(raw.get("display"))
        if display is not None:
            # Fail early on a malformed explicit display.
            DisplayIdentifier.parse(display)

        x_lock_dir = raw.get("x_lock_dir", defaults.x_lock_dir)

        return cls(
            display=display,
            binary=_as_optional_str(raw.get("binary")) or defaults.binary,
            args=tuple(str(a) for a in args_raw),
            arg_line=_as_optional_str(raw.get("arg_line")),
            fbdir=_as_optional_str(raw.get("fbdir")),
            port_base=_as_int(raw, "port_base", defaults.port_base, maximum=65535),
            default_display_number=_as_int(
                raw, "default_display_number", defaults.default_display_number
            ),
            max_displays_to_search=_as_int(
                raw, "max_displays_to_search", defaults.max_displays_to_search
            ),
            retry_on_conflict=_as_bool(raw.get("retry_on_conflict"), defaults.retry_on_conflict),
            set_build_property=_as_bool(
                raw.get("set_build_property"), defaults.set_build_property
            ),
            build_property=_as_optional_str(raw.get("build_property")) or defaults.build_property,
            set_environment=_as_bool(raw.get("set_environment"), defaults.set_environment),
            lock_dir=_as_optional_str(raw.get("lock_dir")),
            lock_prefix=_as_optional_str(raw.get("lock_prefix")) or defaults.lock_prefix,
            x_lock_dir=_as_optional_str(x_lock_dir),
            output=_as_optional_str(raw.get("output")) or defaults.output,
            shutdown_timeout_seconds=_as_float(
                raw, "shutdown_timeout_seconds", defaults.shutdown_timeout_seconds
            ),
            probe_timeout_seconds=_as_float(
                raw, "probe_timeout_seconds", defaults.probe_timeout_seconds
            ),
        )

    @property
    def resolved_lock_dir(self) -> Path:
        return Path(self.lock_dir).expanduser() if self.lock_dir else Path(tempfile.gettempdir())

    @property
    def search_numbers(self) -> range:
        """Candidate display numbers, both ends inclusive."""
        start = self.default_display_number
        return range(start, start + self.max_displays_to_search + 1)


@dataclass
class XvfbServerHandle:
    pid: int
    argv: tuple[str, ...]
    create_time: float | None = None
    process: subprocess.Popen | None = field(default=None, repr=False, compare=False)
    output_stream: IO[Any] | None = field(default=None, repr=False, compare=False)


@dataclass
class XvfbSession:
    """Everything a later ``stop`` needs to undo a ``run``."""

    display: DisplayIdentifier
    reservation: Reservation | None = None
    server: XvfbServerHandle | None = None
    properties: dict[str, str] = field(default_factory=dict)
    display_env_set: bool = False
    previous_display: str | None = None
    started_at: str | None = None


__all__ = [
    "OUTPUT_INHERIT",
    "OUTPUT_DEVNULL",
    "DisplayIdentifier",
    "Reservation",
    "XvfbSettings",
    "XvfbServerHandle",
    "XvfbSession",
]
