"""Single idempotent teardown shared by explicit stop and process exit."""
from __future__ import annotations

import atexit
import enum
import logging
import os
import signal
import subprocess
import threading
from collections.abc import MutableMapping
from typing import Any

import psutil

from xvfbctl.core.process import terminate_process

from .models import XvfbSession
from .publisher import restore_display
from .reservation import release as release_reservation

logger = logging.getLogger(__name__)

_EXIT_SIGNALS = tuple(
    s for s in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGHUP", None)) if s is not None
)


class LifecycleState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def teardown_session(
    session: XvfbSession,
    *,
    timeout_seconds: float,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    """Stop the server, delete the lockfile and restore ``DISPLAY``.

    Every step runs even when an earlier one fails. Returns the failure
    messages (already logged); never raises.
    """
    failures: list[str] = []

    server = session.server
    if server is not None:
        try:
            terminate_process(
                server.pid, timeout_seconds=timeout_seconds, create_time=server.create_time
            )
            if server.process is not None:
                server.process.wait(timeout=timeout_seconds)
            logger.info("Stopped Xvfb (pid %s) on display %s", server.pid, session.display)
        except (OSError, subprocess.TimeoutExpired, psutil.Error) as exc:
            failures.append(f"terminate pid {server.pid}: {exc}")
        finally:
            if server.output_stream is not None:
                server.output_stream.close()
        session.server = None

    try:
        release_reservation(session.reservation)
    except OSError as exc:
        failures.append(f"remove lockfile {session.reservation.lockfile}: {exc}")
    session.reservation = None

    try:
        restore_display(session, environ=environ)
    except (OSError, ValueError) as exc:
        failures.append(f"restore DISPLAY: {exc}")

    for message in failures:
        logger.warning("Teardown of display %s: %s", session.display, message)
    return failures


class LifecycleGuard:
    """Owns the running session and guarantees it is torn down exactly once.

    The exit handler (``atexit`` plus SIGTERM/SIGHUP when constructed on the
    main thread) and :meth:`teardown` share one state-guarded code path.
    """

    def __init__(
        self,
        *,
        shutdown_timeout_seconds: float = 5.0,
        environ: MutableMapping[str, str] | None = None,
        register_exit_handler: bool = True,
    ) -> None:
        self.shutdown_timeout_seconds = shutdown_timeout_seconds
        self._environ = environ
        self._lock = threading.RLock()
        self._state = LifecycleState.IDLE
        self._session: XvfbSession | None = None
        self._previous_handlers: dict[int, Any] = {}
        self._exit_registered = False

        if register_exit_handler:
            atexit.register(self._on_exit)
            self._exit_registered = True
            if threading.current_thread() is threading.main_thread():
                for sig in _EXIT_SIGNALS:
                    self._previous_handlers[sig] = signal.signal(sig, self._on_signal)

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def session(self) -> XvfbSession | None:
        return self._session

    def attach(self, session: XvfbSession) -> None:
        with self._lock:
            if self._state is not LifecycleState.IDLE:
                raise RuntimeError(f"Cannot attach a session to a {self._state.value} guard")
            self._session = session
            self._state = LifecycleState.RUNNING

    def teardown(self) -> bool:
        """Tear the session down; returns False when there was nothing to do."""
        with self._lock:
            if self._state is not LifecycleState.RUNNING:
                return False
            self._state = LifecycleState.STOPPING
            session = self._session

        try:
            self._teardown_session(session)
        finally:
            with self._lock:
                self._session = None
                self._state = LifecycleState.STOPPED
        return True

    def _teardown_session(self, session: XvfbSession | None) -> None:
        if session is None:
            return
        try:
            teardown_session(
                session,
                timeout_seconds=self.shutdown_timeout_seconds,
                environ=self._environ,
            )
        except Exception:
            logger.exception("Unexpected failure tearing down display %s", session.display)

    def release(self) -> XvfbSession | None:
        """Hand the session over without stopping it (the caller now owns it)."""
        with self._lock:
            session, self._session = self._session, None
            if self._state is LifecycleState.RUNNING:
                self._state = LifecycleState.STOPPED
        self.close()
        return session

    def close(self) -> None:
        """Unregister the exit and signal handlers."""
        if self._exit_registered:
            atexit.unregister(self._on_exit)
            self._exit_registered = False
        if self._previous_handlers and threading.current_thread() is threading.main_thread():
            for sig, previous in self._previous_handlers.items():
                if signal.getsignal(sig) == self._on_signal:
                    signal.signal(sig, previous)
        self._previous_handlers = {}

    def _on_exit(self) -> None:
        if self.teardown():
            logger.info("Stopped virtual display at interpreter exit")

    def _on_signal(self, signum: int, frame: Any) -> None:
        logger.info("Received signal %s; stopping virtual display", signum)
        if self._state is LifecycleState.STOPPING:
            # Interrupted mid-teardown on this thread; finish it before re-delivering.
            self._teardown_session(self._session)
        else:
            self.teardown()
        previous = self._previous_handlers.pop(signum, signal.SIG_DFL)
        signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        os.kill(os.getpid(), signum)

    def __enter__(self) -> LifecycleGuard:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()
        self.close()


__all__ = ["LifecycleState", "LifecycleGuard", "teardown_session"]
