from __future__ import annotations

import socket
from pathlib import Path

import pytest

from helpers.xvfb import free_port, stub_settings, wait_for_args
from xvfbctl.core.display import BuildContext, XvfbRunner, read_lockfile, xvfb_lifecycle
from xvfbctl.core.display import launcher as launcher_mod
from xvfbctl.core.exceptions import DisplayInUseError, LaunchFailedError
from xvfbctl.core.process import is_process_alive


def test_run_then_stop_releases_everything(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path)
    runner = XvfbRunner(settings, environ={}, register_exit_handler=False)

    session = runner.run()
    pid = session.server.pid
    lockfile = session.reservation.lockfile
    assert is_process_alive(pid)
    assert read_lockfile(lockfile)["server_pid"] == pid

    assert runner.stop() is True
    assert not lockfile.exists()
    assert not is_process_alive(pid)
    assert runner.session is None
    assert session.server is None

    # Second stop is a no-op.
    assert runner.stop() is False


def test_end_to_end_display_99_with_stub(tmp_path: Path) -> None:
    port = free_port()
    settings = stub_settings(
        tmp_path,
        port_base=port - 99,
        default_display_number=99,
        max_displays_to_search=1,
    )
    context = BuildContext()

    with xvfb_lifecycle(settings, context=context, environ={}, register_exit_handler=False) as session:
        assert str(session.display) == ":99"
        assert session.reservation.port == port
        assert wait_for_args(tmp_path / "bin")[0] == ":99"
        assert session.server.argv[:2] == (settings.binary, ":99")
        assert context.get_property("xvfb.display") == ":99"

    assert not session_lockfile_exists(tmp_path)


def session_lockfile_exists(tmp_path: Path) -> bool:
    locks = tmp_path / "locks"
    return locks.exists() and any(locks.iterdir())


def test_explicit_active_display_launches_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    port = free_port()
    settings = stub_settings(tmp_path, port_base=port - 3, display=":3")

    def _no_launch(*_args, **_kwargs):
        raise AssertionError("no process may be launched for an active display")

    monkeypatch.setattr("xvfbctl.core.display.manager.launch", _no_launch)

    with socket.socket() as listener:
        listener.bind(("127.0.0.1", port))
        listener.listen(1)
        runner = XvfbRunner(settings, environ={}, register_exit_handler=False)
        with pytest.raises(DisplayInUseError):
            runner.run()
    assert runner.session is None


def test_launch_failure_releases_reservation(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path, binary=str(tmp_path / "missing-Xvfb"))
    runner = XvfbRunner(settings, environ={}, register_exit_handler=False)

    with pytest.raises(LaunchFailedError):
        runner.run()

    assert not session_lockfile_exists(tmp_path)
    assert runner.stop() is False


def test_run_sets_and_stop_restores_display_env(tmp_path: Path) -> None:
    settings = stub_settings(tmp_path, set_environment=True)
    environ = {"DISPLAY": ":0"}

    with XvfbRunner(settings, environ=environ, register_exit_handler=False) as runner:
        session = runner.run()
        assert environ["DISPLAY"] == str(session.display)

    assert environ["DISPLAY"] == ":0"


def test_launcher_is_not_called_before_guard_is_armed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = stub_settings(tmp_path)
    runner = XvfbRunner(settings, environ={}, register_exit_handler=False)
    states: list[str] = []
    real_launch = launcher_mod.launch

    def _spy(display, s):
        states.append(runner.guard.state.value)
        return real_launch(display, s)

    monkeypatch.setattr("xvfbctl.core.display.manager.launch", _spy)
    runner.run()
    runner.stop()
    assert states == ["running"]


def test_second_run_leaves_first_display_running(tmp_path: Path) -> None:
    # Two candidates so a second reservation would be possible.
    settings = stub_settings(tmp_path, max_displays_to_search=1)
    runner = XvfbRunner(settings, environ={}, register_exit_handler=False)

    first = runner.run()
    pid = first.server.pid
    try:
        with pytest.raises(RuntimeError, match="cannot run again"):
            runner.run()

        assert is_process_alive(pid)
        assert runner.session is first
        assert sorted(p.name for p in (tmp_path / "locks").iterdir()) == [first.reservation.lockfile.name]
    finally:
        runner.stop()

    assert not is_process_alive(pid)
    assert list((tmp_path / "locks").iterdir()) == []


def test_reservation_released_when_guard_refuses_session(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = stub_settings(tmp_path)
    runner = XvfbRunner(settings, environ={}, register_exit_handler=False)

    def _refuse(_session) -> None:
        raise RuntimeError("guard busy")

    monkeypatch.setattr(runner.guard, "attach", _refuse)

    with pytest.raises(RuntimeError, match="guard busy"):
        runner.run()
    assert list((tmp_path / "locks").iterdir()) == []
