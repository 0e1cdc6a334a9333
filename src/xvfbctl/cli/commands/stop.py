"""
xvfbctl stop command.

SUMMARY: Stop the display started by 'xvfbctl run'
"""

from __future__ import annotations

import argparse
import sys

from xvfbctl.cli import (
    OutputFormatter,
    add_json_flag,
    add_repo_root_flag,
    get_repo_root,
    load_settings,
    state_file_path,
)
from xvfbctl.core.display import clear_session, load_session, stop_xvfb
from xvfbctl.core.exceptions import XvfbError

SUMMARY = "Stop the display started by 'xvfbctl run'"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "--shutdown-timeout",
        dest="shutdown_timeout_seconds",
        type=float,
        help="Seconds to wait after SIGTERM before SIGKILL",
    )
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root = get_repo_root(args)
        state_path = state_file_path(repo_root)
        session = load_session(state_path)

        if session is None:
            formatter.success({"display": None}, "No display is running", status="not_running")
            return 0

        settings = load_settings(args, repo_root)
        failures = stop_xvfb(session, settings)
        if failures:
            # Keep the state file so the stop can be retried.
            raise XvfbError(
                f"Could not fully stop display {session.display}: {'; '.join(failures)}",
                context={"display": str(session.display), "failures": failures},
            )
        clear_session(state_path)

        formatter.success(
            {"display": str(session.display)},
            f"Stopped display {session.display}",
            status="stopped",
        )
        return 0

    except (XvfbError, OSError, ValueError) as e:
        formatter.error(e, error_code="stop_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
