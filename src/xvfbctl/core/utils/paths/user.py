"""User configuration directory (default: ``~/.xvfbctl``).

Precedence (highest to lowest):
1. Environment variable: XVFBCTL_paths__user_config_dir
2. Bundled defaults: xvfbctl.data/config/paths.yaml (paths.user_config_dir)
3. Hardcoded fallback: ".xvfbctl"

Relative values are resolved against the user's home directory (not CWD).
"""

from __future__ import annotations

import os
from pathlib import Path

from .project import _bundled_paths_value

DEFAULT_USER_CONFIG_PRIMARY = ".xvfbctl"


def get_user_config_dir(*, create: bool = True) -> Path:
    from xvfbctl.core.utils.io import ensure_directory

    raw = (
        (os.environ.get("XVFBCTL_paths__user_config_dir") or "").strip()
        or _bundled_paths_value("user_config_dir")
        or DEFAULT_USER_CONFIG_PRIMARY
    )
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = Path.home() / p

    resolved = p.resolve()
    if create:
        ensure_directory(resolved)
    return resolved


__all__ = ["DEFAULT_USER_CONFIG_PRIMARY", "get_user_config_dir"]
