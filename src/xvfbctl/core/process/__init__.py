"""Process liveness and termination helpers."""
from __future__ import annotations

from .terminate import is_process_alive, process_create_time, terminate_process

__all__ = ["is_process_alive", "process_create_time", "terminate_process"]
