"""Project configuration directory (default: ``<project>/.xvfbctl``).

Precedence (highest to lowest):
1. Environment variable: XVFBCTL_paths__project_config_dir
2. Bundled defaults: xvfbctl.data/config/paths.yaml (paths.project_config_dir)
3. Hardcoded fallback: ".xvfbctl"
"""
from __future__ import annotations

import os
from pathlib import Path

from xvfbctl.data import read_yaml as read_bundled_yaml

DEFAULT_PROJECT_CONFIG_PRIMARY = ".xvfbctl"


def _bundled_paths_value(key: str) -> str | None:
    try:
        data = read_bundled_yaml("config", "paths.yaml")
    except OSError:
        return None
    section = data.get("paths") if isinstance(data, dict) else None
    if isinstance(section, dict):
        value = section.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def get_project_config_dir(repo_root: Path, create: bool = True) -> Path:
    from xvfbctl.core.utils.io import ensure_directory

    name = (
        (os.environ.get("XVFBCTL_paths__project_config_dir") or "").strip()
        or _bundled_paths_value("project_config_dir")
        or DEFAULT_PROJECT_CONFIG_PRIMARY
    )
    project_dir = Path(repo_root) / name

    if create:
        ensure_directory(project_dir)
    return project_dir


__all__ = ["DEFAULT_PROJECT_CONFIG_PRIMARY", "get_project_config_dir"]
