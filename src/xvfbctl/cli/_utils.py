"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from xvfbctl.core.config.domains import PathsConfig, XvfbConfig
from xvfbctl.core.display import XvfbSettings
from xvfbctl.core.utils.paths import resolve_project_root

# argparse dest -> xvfb config key
XVFB_OVERRIDE_KEYS: tuple[str, ...] = (
    "display",
    "binary",
    "args",
    "arg_line",
    "fbdir",
    "port_base",
    "default_display_number",
    "max_displays_to_search",
    "retry_on_conflict",
    "set_build_property",
    "build_property",
    "set_environment",
    "lock_dir",
    "lock_prefix",
    "x_lock_dir",
    "output",
    "shutdown_timeout_seconds",
    "probe_timeout_seconds",
)


def get_repo_root(args: argparse.Namespace) -> Path:
    """Project root from ``--repo-root``, else auto-detected."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).expanduser().resolve()
    return resolve_project_root()


def xvfb_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key in XVFB_OVERRIDE_KEYS:
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value
    return overrides


def load_settings(args: argparse.Namespace, repo_root: Path, **forced: Any) -> XvfbSettings:
    """Configured ``xvfb`` settings with command-line overrides applied."""
    section = dict(XvfbConfig(repo_root=repo_root).section)
    section.update(xvfb_overrides(args))
    section.update(forced)
    return XvfbSettings.from_raw(section)


def state_file_path(repo_root: Path) -> Path:
    return PathsConfig(repo_root=repo_root).state_file


__all__ = [
    "XVFB_OVERRIDE_KEYS",
    "get_repo_root",
    "xvfb_overrides",
    "load_settings",
    "state_file_path",
]
