"""xvfbctl core library: configuration, display lifecycle and process helpers."""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
