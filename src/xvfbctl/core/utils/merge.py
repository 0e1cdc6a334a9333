"""Deep merge used for layering configuration files.

Arrays follow override semantics:
  - Default: replace the array entirely
  - First element "+": append the remaining items to the base array
  - First element "=": explicit replace (same as default)
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Example:
        >>> deep_merge({"xvfb": {"binary": "Xvfb"}}, {"xvfb": {"port_base": 7000}})
        {'xvfb': {'binary': 'Xvfb', 'port_base': 7000}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_arrays(current, value)
        else:
            result[key] = value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge a layered array: ``["+", ...]`` appends, anything else replaces.

    Example:
        >>> merge_arrays(["-ac"], ["+", "-nolisten", "tcp"])
        ['-ac', '-nolisten', 'tcp']
    """
    if override and override[0] == "+":
        return [*base, *override[1:]]
    if override and override[0] == "=":
        return list(override[1:])
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
