from __future__ import annotations

import json
import os
import socket
from pathlib import Path

import pytest

from helpers.xvfb import free_port
from xvfbctl.core.display import (
    XvfbSettings,
    is_display_active,
    lockfile_path,
    reserve_display,
    resolve_display,
)
from xvfbctl.core.display import resolver as resolver_mod
from xvfbctl.core.exceptions import DisplayInUseError, NoDisplayAvailableError


def _settings(tmp_path: Path, **raw) -> XvfbSettings:
    base = {"lock_dir": str(tmp_path / "locks"), "x_lock_dir": None, "probe_timeout_seconds": 0.5}
    base.update(raw)
    return XvfbSettings.from_raw(base)


def _listener(port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", port))
    sock.listen(1)
    return sock


def test_single_free_port_in_range_is_reserved_with_one_lockfile(tmp_path: Path) -> None:
    port_base = free_port() - 2
    settings = _settings(
        tmp_path, port_base=port_base, default_display_number=0, max_displays_to_search=2
    )
    # Displays :0 and :1 are reserved by other runs; only :2 is free.
    for n in (0, 1):
        path = lockfile_path(settings, port_base + n)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{}", encoding="utf-8")

    display, reservation = reserve_display(settings)

    assert display.number == 2
    assert reservation.port == port_base + 2
    assert reservation.lockfile.exists()
    meta = json.loads(reservation.lockfile.read_text(encoding="utf-8"))
    assert meta["port"] == port_base + 2
    assert len(list((tmp_path / "locks").iterdir())) == 3


def test_fully_locked_range_fails_without_binding(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(
        tmp_path,
        port_base=6000,
        default_display_number=40,
        max_displays_to_search=3,
        retry_on_conflict=False,
    )
    for n in settings.search_numbers:
        path = lockfile_path(settings, 6000 + n)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()

    def _no_bind(*_args, **_kwargs):
        raise AssertionError("resolver must not bind when every candidate is locked")

    monkeypatch.setattr(resolver_mod, "_bind_and_reserve", _no_bind)

    with pytest.raises(NoDisplayAvailableError) as excinfo:
        reserve_display(settings)
    assert excinfo.value.reason == NoDisplayAvailableError.RANGE_EXHAUSTED


def test_bind_conflict_with_retry_disabled_fails_immediately(tmp_path: Path) -> None:
    port = free_port()
    settings = _settings(
        tmp_path, port_base=port, default_display_number=0, max_displays_to_search=5, retry_on_conflict=False
    )
    with _listener(port):
        with pytest.raises(NoDisplayAvailableError) as excinfo:
            reserve_display(settings)
    assert excinfo.value.reason == NoDisplayAvailableError.RETRY_DISABLED
    assert not lockfile_path(settings, port).exists()


def test_bind_conflict_with_retry_moves_to_next_display(tmp_path: Path) -> None:
    port = free_port()
    settings = _settings(tmp_path, port_base=port, default_display_number=0, max_displays_to_search=1)
    with _listener(port):
        display, reservation = reserve_display(settings)
    assert display.number == 1
    assert reservation.port == port + 1


def test_explicit_active_display_is_rejected(tmp_path: Path) -> None:
    port = free_port()
    settings = _settings(tmp_path, port_base=port - 5)
    with _listener(port):
        with pytest.raises(DisplayInUseError):
            resolve_display(settings, explicit=":5")
    assert not (tmp_path / "locks").exists()


def test_explicit_free_display_takes_no_reservation(tmp_path: Path) -> None:
    port = free_port()
    settings = _settings(tmp_path, port_base=port - 5, display=":5")
    display, reservation = resolve_display(settings)
    assert str(display) == ":5"
    assert reservation is None


def test_is_display_active_connects_to_the_derived_port() -> None:
    port = free_port()
    assert is_display_active(":3", port_base=port - 3, timeout_seconds=0.5) is False
    with _listener(port):
        assert is_display_active(":3.1", port_base=port - 3, timeout_seconds=0.5) is True


def test_live_x_lock_marks_display_active(tmp_path: Path) -> None:
    port = free_port()
    (tmp_path / ".X7-lock").write_text(f"{os.getpid():>10}\n", encoding="ascii")
    assert is_display_active(":7", port_base=port - 7, timeout_seconds=0.5, x_lock_dir=tmp_path)


def test_search_skips_displays_with_live_x_lock(tmp_path: Path) -> None:
    port_base = free_port()
    x_dir = tmp_path / "xlocks"
    x_dir.mkdir()
    (x_dir / ".X0-lock").write_text(f"{os.getpid()}\n", encoding="ascii")
    settings = _settings(
        tmp_path,
        port_base=port_base,
        default_display_number=0,
        max_displays_to_search=1,
        x_lock_dir=str(x_dir),
    )
    display, _reservation = reserve_display(settings)
    assert display.number == 1


def test_search_past_highest_port_exhausts_range(tmp_path: Path) -> None:
    settings = _settings(tmp_path, port_base=65530, default_display_number=10, max_displays_to_search=2)

    with pytest.raises(NoDisplayAvailableError) as exc:
        reserve_display(settings)

    assert exc.value.reason == "range_exhausted"
    assert not (tmp_path / "locks").exists() or list((tmp_path / "locks").iterdir()) == []


def test_out_of_range_display_port_is_not_active() -> None:
    assert is_display_active(":70000", port_base=6000, timeout_seconds=0.5) is False
