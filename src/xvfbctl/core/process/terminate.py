"""Kill-and-wait termination of a server process and its process group."""
from __future__ import annotations

import logging
import os
import signal

import psutil

logger = logging.getLogger(__name__)

# Tolerance when comparing a recorded create_time with psutil's value.
_CREATE_TIME_SLACK_SECONDS = 0.01


def is_process_alive(pid: int | None) -> bool:
    if not pid or pid <= 0:
        return False
    try:
        proc = psutil.Process(pid)
        return proc.status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        # AccessDenied means the pid exists but belongs to someone else.
        return psutil.pid_exists(pid)


def process_create_time(pid: int) -> float | None:
    try:
        return float(psutil.Process(pid).create_time())
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None


def _same_process(proc: psutil.Process, create_time: float | None) -> bool:
    if create_time is None:
        return True
    try:
        return abs(proc.create_time() - float(create_time)) <= _CREATE_TIME_SLACK_SECONDS
    except psutil.Error:
        return False


def _signal_group(proc: psutil.Process, sig: int) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, sig)
            return
        except OSError:
            pass
    try:
        proc.send_signal(sig)
    except psutil.NoSuchProcess:
        pass


def terminate_process(
    pid: int,
    *,
    timeout_seconds: float,
    create_time: float | None = None,
) -> bool:
    """Terminate ``pid``: SIGTERM, wait up to ``timeout_seconds``, then SIGKILL.

    When ``create_time`` is given, a process whose start time differs (a
    recycled pid) is left alone. Returns True when the process is gone.
    """
    if pid <= 0:
        return True
    try:
        proc = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return True

    if not _same_process(proc, create_time):
        logger.warning("pid %s was reused by another process; not terminating it", pid)
        return True

    _signal_group(proc, signal.SIGTERM)
    _gone, alive = psutil.wait_procs([proc], timeout=max(0.1, float(timeout_seconds)))
    if not alive:
        return True

    logger.warning("process %s ignored SIGTERM for %.1fs; sending SIGKILL", pid, timeout_seconds)
    _signal_group(proc, signal.SIGKILL)
    _gone, alive = psutil.wait_procs(alive, timeout=max(0.1, float(timeout_seconds)))
    return not alive


__all__ = ["is_process_alive", "process_create_time", "terminate_process"]
