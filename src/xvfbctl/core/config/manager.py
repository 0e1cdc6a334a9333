"""
xvfbctl configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from xvfbctl.core.utils.io import iter_yaml_files, read_yaml
from xvfbctl.core.utils.merge import deep_merge as _deep_merge
from xvfbctl.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "XVFBCTL_"
SCHEMA_NAME = "config/config.schema.yaml"


class ConfigManager:
    """Load, merge, and validate xvfbctl configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: XVFBCTL_<section>__<key> (e.g. XVFBCTL_xvfb__port_base=7000)
    2. Project-local config: <project-config-dir>/config.local/*.yaml (uncommitted)
    3. Project config: <project-config-dir>/config/*.yaml
    4. User config: <user-config-dir>/config/*.yaml
    5. Bundled defaults: xvfbctl.data/config/*.yaml

    Files inside one directory are merged in alphabetical order.
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        from xvfbctl.core.utils.paths import (
            get_project_config_dir,
            get_user_config_dir,
            resolve_project_root,
        )

        self.repo_root = Path(repo_root).expanduser().resolve() if repo_root else resolve_project_root()

        project_root_dir = get_project_config_dir(self.repo_root, create=False)
        user_root_dir = get_user_config_dir(create=False)

        self.core_config_dir = get_data_path("config")
        self.user_config_dir = user_root_dir / "config"
        self.project_config_dir = project_root_dir / "config"
        self.project_local_config_dir = project_root_dir / "config.local"

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        return _deep_merge(base, override)

    def config_dirs(self) -> List[Path]:
        """Return the YAML layer directories in low→high precedence order."""
        return [
            self.core_config_dir,
            self.user_config_dir,
            self.project_config_dir,
            self.project_local_config_dir,
        ]

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _as_null(self, v: str) -> bool:
        return v.strip().lower() in {"null", "none", "~"}

    def _coerce_type(self, value: str) -> Any:
        if self._as_null(value):
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[str]:
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            if strict:
                raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
            return []
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[str], Any, str]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            # Single-segment keys (XVFBCTL_PROJECT_ROOT) are process settings, not config paths.
            if "__" not in raw:
                continue
            path = self._parse_env_key(raw, strict=strict)
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key]), raw

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int]], value: Any) -> None:
        cur: Dict[str, Any] = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def check_env_overrides(self) -> None:
        """Raise ValueError for malformed ``XVFBCTL_*`` override keys."""
        for _ in self._iter_env_overrides(strict=True):
            pass

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool) -> None:
        for path, typed_value, _raw in self._iter_env_overrides(strict=strict):
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        d = Path(directory)
        if not d.exists():
            return cfg
        for path in iter_yaml_files(d):
            # Fail closed: configuration must never silently ignore invalid YAML.
            layer = read_yaml(path, default={}, raise_on_error=True) or {}
            if not isinstance(layer, dict):
                raise ValueError(f"Configuration file must contain a mapping: {path}")
            logger.debug("Merging configuration layer %s", path)
            cfg = self.deep_merge(cfg, layer)
        return cfg

    def load_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every source, bypassing the cache."""
        cfg: Dict[str, Any] = {}
        for directory in self.config_dirs():
            cfg = self._load_directory(directory, cfg)

        self.apply_env_overrides(cfg, strict=validate)

        if validate:
            self.validate(cfg)
        return cfg

    def validate(self, cfg: Dict[str, Any]) -> None:
        from xvfbctl.core.schemas import validate_payload

        validate_payload(cfg, SCHEMA_NAME, repo_root=self.repo_root)

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration through the shared cache.

        The returned dict should be treated as immutable.
        """
        from .cache import get_cached_config

        return get_cached_config(repo_root=self.repo_root, validate=validate)

    # ========== Accessors ==========

    def get_all(self) -> Dict[str, Any]:
        return self.load_config(validate=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get("xvfb.port_base")
            6000
            >>> manager.get("nonexistent.key", "fallback")
            'fallback'
        """
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "SCHEMA_NAME"]
