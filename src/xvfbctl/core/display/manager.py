from __future__ import annotations

import logging
from collections.abc import MutableMapping
from contextlib import contextmanager
from typing import Any, Iterator

from .guard import LifecycleGuard, LifecycleState, teardown_session
from .launcher import launch
from .models import XvfbSession, XvfbSettings
from .publisher import BuildContext, publish_display
from .reservation import record_server, release
from .resolver import resolve_display
from .state import utc_timestamp

logger = logging.getLogger(__name__)


class XvfbRunner:
    """Start one virtual display and make sure it goes away again.

    The guard is armed before anything is launched, so an interpreter exit or
    SIGTERM at any later point still stops the server and frees the lockfile.
    """

    def __init__(
        self,
        settings: XvfbSettings,
        *,
        context: BuildContext | None = None,
        environ: MutableMapping[str, str] | None = None,
        register_exit_handler: bool = True,
    ) -> None:
        self.settings = settings
        self.context = context if context is not None else BuildContext()
        self._environ = environ
        self.guard = LifecycleGuard(
            shutdown_timeout_seconds=settings.shutdown_timeout_seconds,
            environ=environ,
            register_exit_handler=register_exit_handler,
        )

    @property
    def session(self) -> XvfbSession | None:
        return self.guard.session

    def run(self, explicit_display: Any = None) -> XvfbSession:
        """Resolve a display, launch the server on it and publish it.

        Raises:
            DisplayInUseError, NoDisplayAvailableError, InvalidDisplayFormatError,
            LaunchFailedError: Nothing is left running or reserved.
            RuntimeError: This runner already ran; its display is left as it is.
        """
        settings = self.settings
        if self.guard.state is not LifecycleState.IDLE:
            raise RuntimeError(f"XvfbRunner cannot run again: its display is {self.guard.state.value}")

        reservation = None
        attached = False
        try:
            display, reservation = resolve_display(settings, explicit=explicit_display)
            session = XvfbSession(display=display, reservation=reservation, started_at=utc_timestamp())
            self.guard.attach(session)
            attached = True

            handle = launch(display, settings)
            session.server = handle
            if reservation is not None:
                record_server(reservation, handle.pid)
            logger.info("Xvfb running on display %s (pid %s)", display, handle.pid)

            publish_display(session, settings, context=self.context, environ=self._environ)
        except BaseException:
            if attached:
                self.guard.teardown()
                self.guard.close()
            else:
                release(reservation)
                if self.guard.state is LifecycleState.IDLE:
                    self.guard.close()
            raise
        return session

    def stop(self) -> bool:
        """Stop the server; a second call (or a call before ``run``) does nothing."""
        stopped = self.guard.teardown()
        self.guard.close()
        return stopped

    def detach(self) -> XvfbSession | None:
        """Leave the server running and return its session to the caller."""
        return self.guard.release()

    def __enter__(self) -> XvfbRunner:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def start_xvfb(
    settings: XvfbSettings,
    *,
    explicit_display: Any = None,
    context: BuildContext | None = None,
    environ: MutableMapping[str, str] | None = None,
    register_exit_handler: bool = True,
) -> XvfbRunner:
    runner = XvfbRunner(
        settings,
        context=context,
        environ=environ,
        register_exit_handler=register_exit_handler,
    )
    runner.run(explicit_display)
    return runner


def stop_xvfb(
    session: XvfbSession,
    settings: XvfbSettings,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    """Tear down a session owned by no guard (e.g. one loaded from the state file)."""
    return teardown_session(
        session, timeout_seconds=settings.shutdown_timeout_seconds, environ=environ
    )


@contextmanager
def xvfb_lifecycle(
    settings: XvfbSettings,
    *,
    explicit_display: Any = None,
    context: BuildContext | None = None,
    environ: MutableMapping[str, str] | None = None,
    register_exit_handler: bool = True,
) -> Iterator[XvfbSession]:
    """Run a virtual display for the duration of the ``with`` block."""
    runner = start_xvfb(
        settings,
        explicit_display=explicit_display,
        context=context,
        environ=environ,
        register_exit_handler=register_exit_handler,
    )
    try:
        session = runner.session
        assert session is not None
        yield session
    finally:
        runner.stop()


__all__ = ["XvfbRunner", "start_xvfb", "stop_xvfb", "xvfb_lifecycle"]
