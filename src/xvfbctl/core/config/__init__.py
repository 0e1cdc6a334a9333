"""xvfbctl configuration system.

Usage:
    from xvfbctl.core.config import ConfigManager, XvfbConfig

    manager = ConfigManager(repo_root=Path("/path/to/project"))
    config = manager.load_config()

    settings = XvfbConfig(repo_root=Path("/path/to/project")).settings
"""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_all_caches, get_cached_config, is_cached
from .domains import LoggingConfig, PathsConfig, XvfbConfig
from .manager import ConfigManager

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "LoggingConfig",
    "PathsConfig",
    "XvfbConfig",
]
