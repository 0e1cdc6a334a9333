"""
xvfbctl exec command.

SUMMARY: Run a command with a virtual display, then stop it

Usage: xvfbctl exec [options] -- COMMAND [ARGS...]

The display is passed to COMMAND through ``DISPLAY``; the exit status is the
command's own.
"""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys

from xvfbctl.cli import (
    OutputFormatter,
    add_repo_root_flag,
    add_xvfb_override_args,
    get_repo_root,
    load_settings,
)
from xvfbctl.core.display import XvfbRunner, child_environment
from xvfbctl.core.exceptions import XvfbError

SUMMARY = "Run a command with a virtual display, then stop it"

logger = logging.getLogger(__name__)


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_xvfb_override_args(parser)
    add_repo_root_flag(parser)
    parser.add_argument(
        "cmd",
        nargs=argparse.REMAINDER,
        metavar="COMMAND",
        help="Command to run (prefix with -- to stop option parsing)",
    )


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=False)

    cmd = list(args.cmd or [])
    if cmd and cmd[0] == "--":
        cmd = cmd[1:]
    if not cmd:
        formatter.error(ValueError("no command given"), error_code="exec_error")
        return 2

    try:
        repo_root = get_repo_root(args)
        # The child gets DISPLAY explicitly; this process's environment is left alone.
        settings = load_settings(args, repo_root, set_environment=False)

        with XvfbRunner(settings) as runner:
            session = runner.run()
            logger.info("Running %s on display %s", cmd[0], session.display)
            try:
                return subprocess.call(cmd, env=child_environment(session.display))  # noqa: S603
            except FileNotFoundError as e:
                formatter.error(e, f"command not found: {cmd[0]}", error_code="exec_error")
                return 127
            except PermissionError as e:
                formatter.error(e, f"command not executable: {cmd[0]}", error_code="exec_error")
                return 126

    except (XvfbError, OSError, ValueError) as e:
        formatter.error(e, error_code="exec_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
