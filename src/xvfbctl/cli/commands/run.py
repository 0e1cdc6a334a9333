"""
xvfbctl run command.

SUMMARY: Start a virtual display and leave it running

The session (display, server pid, reservation lockfile and published build
properties) is written to the state file so a later ``xvfbctl stop`` can tear
it down.
"""

from __future__ import annotations

import argparse
import logging
import sys

from xvfbctl.cli import (
    OutputFormatter,
    add_json_flag,
    add_repo_root_flag,
    add_xvfb_override_args,
    get_repo_root,
    load_settings,
    state_file_path,
)
from xvfbctl.core.display import XvfbRunner, load_session, save_session, stop_xvfb
from xvfbctl.core.exceptions import XvfbError
from xvfbctl.core.process import is_process_alive

SUMMARY = "Start a virtual display and leave it running"

logger = logging.getLogger(__name__)


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_xvfb_override_args(parser)
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        repo_root = get_repo_root(args)
        settings = load_settings(args, repo_root)
        state_path = state_file_path(repo_root)

        previous = load_session(state_path)
        if previous is not None:
            if previous.server is not None and is_process_alive(previous.server.pid):
                raise XvfbError(
                    f"A display is already running on {previous.display} "
                    f"(pid {previous.server.pid}); run 'xvfbctl stop' first",
                    context={"display": str(previous.display), "pid": previous.server.pid},
                )
            logger.warning("Discarding state of dead display %s", previous.display)
            stop_xvfb(previous, settings)

        runner = XvfbRunner(settings)
        session = runner.run()
        try:
            save_session(session, state_path)
        except BaseException:
            runner.stop()
            raise
        runner.detach()
        if session.server is not None and session.server.output_stream is not None:
            # The server keeps its own descriptor.
            session.server.output_stream.close()

        pid = session.server.pid if session.server else None
        formatter.success(
            {
                "display": str(session.display),
                "pid": pid,
                "properties": session.properties,
                "state_file": str(state_path),
            },
            str(session.display),
            status="running",
        )
        return 0

    except (XvfbError, OSError, ValueError) as e:
        formatter.error(e, error_code="run_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
