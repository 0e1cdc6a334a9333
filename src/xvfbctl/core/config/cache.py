"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across the CLI,
the pytest plugin and the domain config accessors.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

_config_cache: Dict[str, Dict[str, Any]] = {}


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    """Resolve repo_root to a canonical absolute Path.

    For ``repo_root=None`` the current project root is resolved so the cache
    key is project-specific.
    """
    if repo_root is None:
        from xvfbctl.core.utils.paths import resolve_project_root

        return resolve_project_root()

    return Path(repo_root).expanduser().resolve()


def _fingerprint_dir(d: Path) -> list[tuple[str, int, int]]:
    from xvfbctl.core.utils.io import iter_yaml_files

    files: list[tuple[str, int, int]] = []
    if not d.exists():
        return files
    for p in iter_yaml_files(d):
        try:
            st = p.stat()
            files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
        except OSError:
            files.append((p.name, 0, 0))
    return files


def _cache_key(repo_root: Optional[Path]) -> str:
    base = _normalize_repo_root(repo_root)

    # Long-running processes (pytest sessions) may mutate XVFBCTL_* env vars
    # or rewrite project YAML after the first load.
    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith("XVFBCTL_")
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    from xvfbctl.core.utils.paths import get_project_config_dir, get_user_config_dir

    project_root_dir = get_project_config_dir(base, create=False)
    user_root_dir = get_user_config_dir(create=False)
    cfg_files = {
        "project": _fingerprint_dir(project_root_dir / "config"),
        "project_local": _fingerprint_dir(project_root_dir / "config.local"),
        "user": _fingerprint_dir(user_root_dir / "config"),
    }
    cfg_fp = hashlib.sha256(repr(cfg_files).encode("utf-8")).hexdigest()[:12]

    return f"{base}:env={env_fp}:cfg={cfg_fp}"


def get_cached_config(
    repo_root: Optional[Path] = None,
    validate: bool = False,
) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance for the same repo_root, environment
    and config file state.

    Args:
        repo_root: Repository root path. Uses auto-detection if None.
        validate: Whether to validate against the schema on a cache miss.

    Returns:
        Configuration dictionary (cached, treat as immutable).
    """
    normalized_root = _normalize_repo_root(repo_root)
    key = _cache_key(normalized_root)

    # Lazy import to avoid circular dependency
    from .manager import ConfigManager

    manager = ConfigManager(repo_root=normalized_root)
    if key not in _config_cache:
        # IMPORTANT: call the uncached loader to avoid recursion
        _config_cache[key] = manager.load_uncached(validate=False)

    cfg = _config_cache[key]
    if validate:
        manager.check_env_overrides()
        manager.validate(cfg)
    return cfg


def clear_all_caches() -> None:
    """Clear the config dict cache."""
    _config_cache.clear()


def is_cached(repo_root: Optional[Path] = None) -> bool:
    return _cache_key(repo_root) in _config_cache


__all__ = [
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
]
