"""Project root resolution.

Resolution priority:
1. ``XVFBCTL_PROJECT_ROOT`` environment variable
2. Git repository root via ``git rev-parse --show-toplevel``
3. The current working directory

A build plugin must keep working outside a git checkout (source tarballs,
CI caches), so unlike an explicit override a failed git lookup is not fatal.
"""
from __future__ import annotations

import os
import subprocess
from pathlib import Path

from .errors import XvfbPathError

PROJECT_ROOT_ENV = "XVFBCTL_PROJECT_ROOT"


def resolve_project_root() -> Path:
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise XvfbPathError(f"{PROJECT_ROOT_ENV} points at missing path: {env_path}")
        return env_path

    cwd = Path.cwd().resolve()
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            text=True,
            capture_output=True,
            check=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.CalledProcessError, subprocess.TimeoutExpired):
        return cwd

    root_str = (result.stdout or "").strip()
    if not root_str:
        return cwd
    return Path(root_str).resolve()


__all__ = ["PROJECT_ROOT_ENV", "resolve_project_root"]
