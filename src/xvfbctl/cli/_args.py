"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse
from typing import Any


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override project root path",
    )


def add_dry_run_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Show what would be done without making changes",
    )


def add_lock_args(parser: Any) -> None:
    """Add the reservation lockfile location options."""
    parser.add_argument("--lock-dir", help="Directory for reservation lockfiles")
    parser.add_argument("--lock-prefix", help="File name prefix of reservation lockfiles")


def add_xvfb_override_args(parser: argparse.ArgumentParser) -> None:
    """Add per-invocation overrides for the ``xvfb`` configuration section.

    Every option defaults to None so only flags given on the command line
    override the configured value.
    """
    group = parser.add_argument_group("display server options")
    group.add_argument("--display", help="Use this display (e.g. ':99') instead of searching")
    group.add_argument("--binary", help="Display server binary (default: Xvfb)")
    group.add_argument(
        "--arg",
        dest="args",
        action="append",
        metavar="ARG",
        help="Extra server argument (repeatable)",
    )
    group.add_argument("--arg-line", help="Extra server arguments as one shell-quoted string")
    group.add_argument("--fbdir", help="Framebuffer directory (created if missing)")
    group.add_argument("--port-base", type=int, help="TCP port of display :0 (default: 6000)")
    group.add_argument(
        "--display-number",
        dest="default_display_number",
        type=int,
        help="First display number to try",
    )
    group.add_argument(
        "--search-width",
        dest="max_displays_to_search",
        type=int,
        help="How many further display numbers to try",
    )
    group.add_argument(
        "--no-retry",
        dest="retry_on_conflict",
        action="store_false",
        default=None,
        help="Fail on the first unavailable display instead of trying the next",
    )
    group.add_argument(
        "--set-build-property",
        dest="set_build_property",
        action="store_true",
        default=None,
        help="Publish the display as a build property",
    )
    group.add_argument(
        "--no-set-build-property",
        dest="set_build_property",
        action="store_false",
        help="Do not publish the display as a build property",
    )
    group.add_argument("--build-property", help="Name of the published build property")
    group.add_argument(
        "--set-environment",
        dest="set_environment",
        action="store_true",
        default=None,
        help="Set DISPLAY in this process",
    )
    group.add_argument(
        "--no-set-environment",
        dest="set_environment",
        action="store_false",
        help="Leave DISPLAY in this process alone",
    )
    add_lock_args(group)
    group.add_argument(
        "--x-lock-dir",
        help="Directory holding X server locks (.X<n>-lock); an empty value disables the check",
    )
    group.add_argument("--output", help="Server output: inherit, devnull or a log file path")
    group.add_argument(
        "--shutdown-timeout",
        dest="shutdown_timeout_seconds",
        type=float,
        help="Seconds to wait after SIGTERM before SIGKILL",
    )
    group.add_argument(
        "--connect-timeout",
        dest="probe_timeout_seconds",
        type=float,
        help="Seconds to wait when checking whether a display is active",
    )


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_dry_run_flag",
    "add_lock_args",
    "add_xvfb_override_args",
]
