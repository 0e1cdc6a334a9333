"""Virtual X display lifecycle.

- Resolve a display: an explicit one, or a bounded search that reserves a
  free port with a lockfile
- Launch the display server in its own process group
- Publish the display as a build property and/or ``DISPLAY``
- Tear everything down exactly once, on stop or on process exit
"""

from .guard import LifecycleGuard, LifecycleState, teardown_session
from .launcher import build_command, launch, split_arg_line
from .manager import XvfbRunner, start_xvfb, stop_xvfb, xvfb_lifecycle
from .models import (
    DisplayIdentifier,
    Reservation,
    XvfbServerHandle,
    XvfbSession,
    XvfbSettings,
)
from .publisher import BuildContext, child_environment, publish_display, restore_display
from .reservation import create_lockfile, lockfile_path, read_lockfile, record_server, release
from .resolver import decode_display_port, is_display_active, reserve_display, resolve_display
from .stale import StaleReservation, cleanup_stale_reservations, find_stale_reservations
from .state import clear_session, load_session, save_session

__all__ = [
    "DisplayIdentifier",
    "Reservation",
    "XvfbServerHandle",
    "XvfbSession",
    "XvfbSettings",
    "BuildContext",
    "LifecycleGuard",
    "LifecycleState",
    "XvfbRunner",
    "build_command",
    "child_environment",
    "cleanup_stale_reservations",
    "clear_session",
    "create_lockfile",
    "decode_display_port",
    "find_stale_reservations",
    "is_display_active",
    "launch",
    "load_session",
    "lockfile_path",
    "publish_display",
    "read_lockfile",
    "record_server",
    "release",
    "reserve_display",
    "resolve_display",
    "restore_display",
    "save_session",
    "split_arg_line",
    "start_xvfb",
    "stop_xvfb",
    "StaleReservation",
    "teardown_session",
    "xvfb_lifecycle",
]
