from __future__ import annotations

import atexit
from pathlib import Path

import pytest

from helpers.xvfb import stub_settings
from xvfbctl.core.display import (
    DisplayIdentifier,
    LifecycleGuard,
    LifecycleState,
    XvfbSession,
    create_lockfile,
    launch,
)
from xvfbctl.core.process import is_process_alive


def test_teardown_without_session_is_a_noop() -> None:
    guard = LifecycleGuard(register_exit_handler=False)
    assert guard.teardown() is False
    assert guard.state is LifecycleState.IDLE


def test_teardown_runs_once(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    reservation = create_lockfile(settings, settings.port_base, 0)
    session = XvfbSession(display=DisplayIdentifier.for_number(0), reservation=reservation)
    session.server = launch(session.display, settings)
    pid = session.server.pid

    guard = LifecycleGuard(shutdown_timeout_seconds=2.0, register_exit_handler=False)
    guard.attach(session)
    assert guard.state is LifecycleState.RUNNING

    assert guard.teardown() is True
    assert guard.state is LifecycleState.STOPPED
    assert guard.session is None
    assert session.server is None
    assert not reservation.lockfile.exists()
    assert not is_process_alive(pid)

    assert guard.teardown() is False


def test_teardown_tolerates_session_that_never_launched(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    reservation = create_lockfile(settings, settings.port_base, 0)
    guard = LifecycleGuard(register_exit_handler=False)
    guard.attach(XvfbSession(display=DisplayIdentifier.for_number(0), reservation=reservation))

    assert guard.teardown() is True
    assert not reservation.lockfile.exists()


def test_teardown_tolerates_missing_lockfile(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    reservation = create_lockfile(settings, settings.port_base, 0)
    reservation.lockfile.unlink()
    guard = LifecycleGuard(register_exit_handler=False)
    guard.attach(XvfbSession(display=DisplayIdentifier.for_number(0), reservation=reservation))

    assert guard.teardown() is True


def test_attach_twice_is_rejected() -> None:
    guard = LifecycleGuard(register_exit_handler=False)
    guard.attach(XvfbSession(display=DisplayIdentifier.for_number(1)))
    with pytest.raises(RuntimeError):
        guard.attach(XvfbSession(display=DisplayIdentifier.for_number(2)))


def test_release_hands_session_over_without_teardown(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    reservation = create_lockfile(settings, settings.port_base, 0)
    session = XvfbSession(display=DisplayIdentifier.for_number(0), reservation=reservation)
    guard = LifecycleGuard(register_exit_handler=False)
    guard.attach(session)

    assert guard.release() is session
    assert reservation.lockfile.exists()
    assert guard.teardown() is False


def test_exit_handler_is_registered_and_removed(monkeypatch: pytest.MonkeyPatch) -> None:
    registered: list = []
    monkeypatch.setattr(atexit, "register", lambda fn: registered.append(fn))
    monkeypatch.setattr(atexit, "unregister", lambda fn: registered.remove(fn))

    guard = LifecycleGuard()
    assert registered == [guard._on_exit]
    guard.close()
    assert registered == []


def test_exit_handler_tears_down(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    reservation = create_lockfile(settings, settings.port_base, 0)
    guard = LifecycleGuard(register_exit_handler=False)
    guard.attach(XvfbSession(display=DisplayIdentifier.for_number(0), reservation=reservation))

    guard._on_exit()

    assert guard.state is LifecycleState.STOPPED
    assert not reservation.lockfile.exists()
