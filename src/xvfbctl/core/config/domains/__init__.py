"""Domain-specific configuration accessors.

Usage:
    from xvfbctl.core.config.domains import XvfbConfig

    settings = XvfbConfig(repo_root=Path("/path/to/project")).settings
"""
from __future__ import annotations

from .logging import LoggingConfig
from .paths import PathsConfig
from .xvfb import XvfbConfig

__all__ = ["LoggingConfig", "PathsConfig", "XvfbConfig"]
