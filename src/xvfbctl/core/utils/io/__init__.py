"""Atomic file I/O helpers used by the config and session-state layers."""
from __future__ import annotations

from .core import PathLike, atomic_write, ensure_directory, ensure_parent_dir
from .yaml import iter_yaml_files, read_yaml, write_yaml

__all__ = [
    "PathLike",
    "atomic_write",
    "ensure_directory",
    "ensure_parent_dir",
    "iter_yaml_files",
    "read_yaml",
    "write_yaml",
]
