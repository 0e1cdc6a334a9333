"""Cache utilities for test isolation."""
from __future__ import annotations


def reset_xvfbctl_caches() -> None:
    """Reset the module-level caches that might persist state between tests."""
    from xvfbctl.core.config.cache import clear_all_caches
    from xvfbctl.data import clear_caches

    clear_all_caches()
    clear_caches()
