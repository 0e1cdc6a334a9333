"""Domain-specific configuration for xvfbctl logging."""
from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> int:
        raw = str(self.section.get("level") or "INFO").strip().upper()
        value = logging.getLevelName(raw)
        return value if isinstance(value, int) else logging.INFO

    @cached_property
    def file(self) -> Path | None:
        """Log file path, resolved relative to the project root."""
        raw = self.section.get("file")
        if not raw or not str(raw).strip():
            return None
        p = Path(str(raw).strip()).expanduser()
        if not p.is_absolute():
            p = self.repo_root / p
        return p


__all__ = ["LoggingConfig"]
