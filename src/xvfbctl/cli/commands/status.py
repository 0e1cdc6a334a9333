"""
xvfbctl status command.

SUMMARY: Show the recorded display and whether its server is alive
"""

from __future__ import annotations

import argparse
import sys

from xvfbctl.cli import OutputFormatter, add_json_flag, add_repo_root_flag, get_repo_root, state_file_path
from xvfbctl.core.display import load_session
from xvfbctl.core.exceptions import XvfbError
from xvfbctl.core.process import is_process_alive

SUMMARY = "Show the recorded display and whether its server is alive"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        state_path = state_file_path(get_repo_root(args))
        session = load_session(state_path)

        if session is None:
            formatter.success({"running": False, "display": None}, "No display is running", status="not_running")
            return 0

        pid = session.server.pid if session.server else None
        alive = is_process_alive(pid)
        lockfile = session.reservation.lockfile if session.reservation else None
        data = {
            "running": alive,
            "display": str(session.display),
            "pid": pid,
            "lockfile": str(lockfile) if lockfile else None,
            "lockfile_present": bool(lockfile and lockfile.exists()),
            "properties": session.properties,
            "started_at": session.started_at,
        }

        if formatter.json_mode:
            formatter.json_output(data)
        else:
            formatter.text(f"Display {session.display}: {'running' if alive else 'not running'}")
            formatter.text_kv("pid", pid)
            formatter.text_kv("started", session.started_at)
            if lockfile:
                formatter.text_kv("lockfile", lockfile)
            for name, value in sorted(session.properties.items()):
                formatter.text_kv(name, value)
        return 0

    except (XvfbError, OSError, ValueError) as e:
        formatter.error(e, error_code="status_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
