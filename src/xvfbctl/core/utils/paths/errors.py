"""Stable error types for the paths subsystem."""

from __future__ import annotations


class XvfbPathError(ValueError):
    """Raised when path resolution fails."""

    pass


__all__ = ["XvfbPathError"]
