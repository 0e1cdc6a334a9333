"""
xvfbctl CLI package.

Commands are auto-discovered: top-level commands live in ``commands/``,
grouped commands in sibling folders (``config/``).

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._args import (
    add_dry_run_flag,
    add_json_flag,
    add_lock_args,
    add_repo_root_flag,
    add_xvfb_override_args,
)
from ._output import OutputFormatter
from ._utils import get_repo_root, load_settings, state_file_path, xvfb_overrides

__all__ = [
    "OutputFormatter",
    "add_dry_run_flag",
    "add_json_flag",
    "add_lock_args",
    "add_repo_root_flag",
    "add_xvfb_override_args",
    "get_repo_root",
    "load_settings",
    "state_file_path",
    "xvfb_overrides",
]
