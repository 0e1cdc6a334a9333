"""Stale reservation discovery and cleanup.

A run that is killed with SIGKILL never reaches its exit handler, so its
lockfile stays behind and that port is skipped by every later search.

- A lockfile whose recorded pids (owner and server) are all dead is stale.
- A lockfile with at least one live recorded pid is kept regardless of age.
- A lockfile without readable metadata is stale once older than ``max_age_seconds``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from xvfbctl.core.process import is_process_alive

from .models import XvfbSettings
from .reservation import read_lockfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaleReservation:
    path: Path
    age_seconds: int
    pids: tuple[int, ...]


def iter_lockfiles(settings: XvfbSettings) -> list[Path]:
    lock_dir = settings.resolved_lock_dir
    if not lock_dir.is_dir():
        return []
    return sorted(p for p in lock_dir.glob(f"{settings.lock_prefix}*") if p.is_file())


def _recorded_pids(path: Path) -> tuple[int, ...]:
    data = read_lockfile(path) or {}
    pids: list[int] = []
    for key in ("pid", "server_pid"):
        value = data.get(key)
        try:
            if value is not None:
                pids.append(int(value))
        except (TypeError, ValueError):
            continue
    return tuple(pids)


def find_stale_reservations(
    lock_files: Iterable[Path],
    *,
    max_age_seconds: int,
    now: float | None = None,
) -> list[StaleReservation]:
    now_ts = time.time() if now is None else float(now)
    stale: list[StaleReservation] = []

    for lock_file in lock_files:
        try:
            st = lock_file.stat()
        except OSError:
            continue
        age = int(max(0, now_ts - st.st_mtime))

        pids = _recorded_pids(lock_file)
        if pids:
            if any(is_process_alive(pid) for pid in pids):
                continue
        elif age <= int(max_age_seconds):
            continue

        stale.append(StaleReservation(path=lock_file, age_seconds=age, pids=pids))

    return sorted(stale, key=lambda s: str(s.path))


def cleanup_stale_reservations(
    settings: XvfbSettings,
    *,
    max_age_seconds: int,
    dry_run: bool,
) -> tuple[list[StaleReservation], list[Path]]:
    """Find and optionally remove stale lockfiles.

    Returns:
        (stale, removed_paths)
    """
    stale = find_stale_reservations(iter_lockfiles(settings), max_age_seconds=max_age_seconds)
    if dry_run:
        return stale, []

    removed: list[Path] = []
    for item in stale:
        try:
            item.path.unlink()
        except OSError as exc:
            logger.warning("Could not remove stale lockfile %s: %s", item.path, exc)
            continue
        logger.info("Removed stale lockfile %s", item.path)
        removed.append(item.path)

    return stale, removed


__all__ = [
    "StaleReservation",
    "iter_lockfiles",
    "find_stale_reservations",
    "cleanup_stale_reservations",
]
