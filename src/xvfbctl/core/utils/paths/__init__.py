"""Path utilities: project root, project and user config directories."""
from __future__ import annotations

from .errors import XvfbPathError
from .project import DEFAULT_PROJECT_CONFIG_PRIMARY, get_project_config_dir
from .resolver import PROJECT_ROOT_ENV, resolve_project_root
from .user import DEFAULT_USER_CONFIG_PRIMARY, get_user_config_dir

__all__ = [
    "XvfbPathError",
    "PROJECT_ROOT_ENV",
    "resolve_project_root",
    "DEFAULT_PROJECT_CONFIG_PRIMARY",
    "get_project_config_dir",
    "DEFAULT_USER_CONFIG_PRIMARY",
    "get_user_config_dir",
]
