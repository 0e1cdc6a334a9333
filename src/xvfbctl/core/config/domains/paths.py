"""Domain-specific configuration for project-relative paths."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from xvfbctl.core.utils.paths import get_project_config_dir

from ..base import BaseDomainConfig

DEFAULT_STATE_FILE = "_state/xvfb.yml"


class PathsConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "paths"

    @cached_property
    def state_file(self) -> Path:
        """Session state file; relative values live under the project config dir."""
        raw = str(self.section.get("state_file") or DEFAULT_STATE_FILE).strip()
        p = Path(raw).expanduser()
        if not p.is_absolute():
            p = get_project_config_dir(self.repo_root, create=False) / p
        return p


__all__ = ["PathsConfig", "DEFAULT_STATE_FILE"]
