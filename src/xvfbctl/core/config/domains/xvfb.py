"""Domain-specific configuration for the virtual display server."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class XvfbConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "xvfb"

    @cached_property
    def settings(self):
        from xvfbctl.core.display.models import XvfbSettings

        return XvfbSettings.from_raw(self.section)


__all__ = ["XvfbConfig"]
