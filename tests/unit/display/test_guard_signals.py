from __future__ import annotations

import json
import os
import signal
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest

from helpers.xvfb import free_port, write_stub_server
from xvfbctl.core.process import is_process_alive, terminate_process

SRC_ROOT = Path(__file__).resolve().parents[3] / "src"

# Starts a display, prints the server pid, then gets SIGTERM either while
# idle or from inside a teardown that is already in progress.
_CHILD = textwrap.dedent(
    """
    import json
    import os
    import signal
    import sys

    from xvfbctl.core.display import XvfbRunner, XvfbSettings
    from xvfbctl.core.display import guard as guard_mod

    raw, mode = json.loads(sys.argv[1]), sys.argv[2]
    runner = XvfbRunner(XvfbSettings.from_raw(raw), environ={})
    session = runner.run()
    print(session.server.pid, flush=True)

    if mode == "during-teardown":
        original = guard_mod.teardown_session
        sent = []

        def interrupted(session, **kwargs):
            if not sent:
                sent.append(True)
                os.kill(os.getpid(), signal.SIGTERM)
            return original(session, **kwargs)

        guard_mod.teardown_session = interrupted
        runner.stop()
    else:
        os.kill(os.getpid(), signal.SIGTERM)
    signal.pause()
    """
)


def _run_child(tmp_path: Path, mode: str) -> tuple[subprocess.CompletedProcess, int]:
    raw = {
        "binary": str(write_stub_server(tmp_path / "bin")),
        "port_base": free_port(),
        "default_display_number": 0,
        "max_displays_to_search": 0,
        "lock_dir": str(tmp_path / "locks"),
        "x_lock_dir": None,
        "output": "devnull",
        "shutdown_timeout_seconds": 2.0,
    }
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_ROOT), env.get("PYTHONPATH", "")) if p)
    proc = subprocess.run(
        [sys.executable, "-c", _CHILD, json.dumps(raw), mode],
        capture_output=True,
        text=True,
        env=env,
        timeout=30,
    )
    lines = proc.stdout.split()
    assert lines, proc.stderr
    return proc, int(lines[0])


@pytest.mark.parametrize("mode", ["idle", "during-teardown"])
def test_sigterm_stops_server_and_releases_lockfile(tmp_path: Path, mode: str) -> None:
    proc, server_pid = _run_child(tmp_path, mode)
    try:
        assert proc.returncode == -signal.SIGTERM, proc.stderr
        assert not is_process_alive(server_pid)
        assert list((tmp_path / "locks").iterdir()) == []
    finally:
        if is_process_alive(server_pid):
            terminate_process(server_pid, timeout_seconds=2.0)
