from __future__ import annotations

from typing import Any, Dict, Mapping


class XvfbError(Exception):
    """Base exception for xvfbctl."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class InvalidDisplayFormatError(XvfbError, ValueError):
    """Raised when a display identifier is not of the form ``[host]:number[.screen]``."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        XvfbError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class DisplayInUseError(XvfbError, RuntimeError):
    """Raised when an explicitly requested display already answers on its port."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        XvfbError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class NoDisplayAvailableError(XvfbError, RuntimeError):
    """Raised when no display could be reserved.

    ``context["reason"]`` is ``"range_exhausted"`` when every candidate was
    tried, or ``"retry_disabled"`` when the first conflict aborted the search.
    """

    RANGE_EXHAUSTED = "range_exhausted"
    RETRY_DISABLED = "retry_disabled"

    def __init__(
        self,
        message: str = "",
        *,
        reason: str = RANGE_EXHAUSTED,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["reason"] = reason
        XvfbError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)

    @property
    def reason(self) -> str:
        return str(self.context.get("reason", ""))


class LaunchFailedError(XvfbError, RuntimeError):
    """Raised when the display server process cannot be spawned."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        XvfbError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class EnvironmentMutationFailedError(XvfbError):
    """Raised (and recovered from) when ``DISPLAY`` cannot be set in-process."""


class SessionStateError(XvfbError, ValueError):
    """Raised when the persisted session state is unreadable or inconsistent."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        XvfbError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "XvfbError",
    "InvalidDisplayFormatError",
    "DisplayInUseError",
    "NoDisplayAvailableError",
    "LaunchFailedError",
    "EnvironmentMutationFailedError",
    "SessionStateError",
]
