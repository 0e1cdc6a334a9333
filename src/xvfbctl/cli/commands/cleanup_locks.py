"""
xvfbctl cleanup_locks command.

SUMMARY: Remove stale display reservation lockfiles
"""

from __future__ import annotations

import argparse
import sys

from xvfbctl.cli import (
    OutputFormatter,
    add_dry_run_flag,
    add_json_flag,
    add_lock_args,
    add_repo_root_flag,
    get_repo_root,
    load_settings,
)
from xvfbctl.core.display import cleanup_stale_reservations
from xvfbctl.core.exceptions import XvfbError

SUMMARY = "Remove stale display reservation lockfiles"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "--max-age",
        dest="max_age",
        type=int,
        default=3600,
        help="Age in seconds after which a lockfile without owner metadata is stale (default: 3600)",
    )
    add_lock_args(parser)
    add_dry_run_flag(parser)
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = load_settings(args, get_repo_root(args))
        stale, removed = cleanup_stale_reservations(
            settings,
            max_age_seconds=args.max_age,
            dry_run=bool(args.dry_run),
        )
        locks = [
            {"path": str(s.path), "age_seconds": s.age_seconds, "pids": list(s.pids)}
            for s in stale
        ]

        if args.dry_run:
            if formatter.json_mode:
                formatter.json_output({"dry_run": True, "stale_locks": locks, "count": len(locks)})
            else:
                formatter.text(
                    f"Found {len(locks)} stale lockfile(s):\n"
                    + "\n".join(f"  {lock['path']} (age: {lock['age_seconds']}s)" for lock in locks)
                )
            return 0

        if formatter.json_mode:
            formatter.json_output(
                {"status": "cleaned", "removed": len(removed), "locks": [str(p) for p in removed]}
            )
        else:
            formatter.text(
                f"Removed {len(removed)} stale lockfile(s)\n" + "\n".join(f"  {p}" for p in removed)
            )
        return 0

    except (XvfbError, OSError, ValueError) as e:
        formatter.error(e, error_code="cleanup_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
