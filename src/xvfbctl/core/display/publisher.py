"""Making the chosen display visible to later build steps."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping, MutableMapping

from xvfbctl.core.exceptions import EnvironmentMutationFailedError

from .models import DisplayIdentifier, XvfbSession, XvfbSettings

logger = logging.getLogger(__name__)

DISPLAY_ENV = "DISPLAY"


class BuildContext:
    """Named string properties shared between build steps."""

    def __init__(self, properties: Mapping[str, str] | None = None) -> None:
        self._properties: dict[str, str] = dict(properties or {})

    def set_property(self, name: str, value: str) -> None:
        self._properties[name] = str(value)

    def get_property(self, name: str, default: str | None = None) -> str | None:
        return self._properties.get(name, default)

    def remove_property(self, name: str) -> None:
        self._properties.pop(name, None)

    def as_dict(self) -> dict[str, str]:
        return dict(self._properties)

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __repr__(self) -> str:
        return f"BuildContext({self._properties!r})"


def set_environment_variable(
    key: str,
    value: str,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Set one variable in the current process environment.

    Raises:
        EnvironmentMutationFailedError: The platform refused the update.
    """
    target = os.environ if environ is None else environ
    try:
        target[key] = value
    except (OSError, ValueError, TypeError) as exc:
        raise EnvironmentMutationFailedError(
            f"Could not set {key}={value!r}: {exc}", context={"key": key, "value": value}
        ) from exc


def publish_display(
    session: XvfbSession,
    settings: XvfbSettings,
    *,
    context: BuildContext | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Publish ``session.display`` as a build property and/or ``DISPLAY``.

    A failed environment update is logged and the run continues.
    """
    display = str(session.display)

    if settings.set_build_property:
        session.properties[settings.build_property] = display
        if context is not None:
            context.set_property(settings.build_property, display)
        logger.info("Set build property %s=%s", settings.build_property, display)

    if settings.set_environment:
        target = os.environ if environ is None else environ
        previous = target.get(DISPLAY_ENV)
        try:
            set_environment_variable(DISPLAY_ENV, display, environ=target)
        except EnvironmentMutationFailedError as exc:
            logger.warning("%s; continuing without %s", exc, DISPLAY_ENV)
            return
        session.previous_display = previous
        session.display_env_set = True
        logger.info("Set %s=%s", DISPLAY_ENV, display)


def restore_display(
    session: XvfbSession,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Undo ``publish_display``'s change to ``DISPLAY`` if it still holds our value."""
    if not session.display_env_set:
        return
    target = os.environ if environ is None else environ
    session.display_env_set = False
    if target.get(DISPLAY_ENV) != str(session.display):
        # Someone else changed it since; leave theirs in place.
        return
    if session.previous_display is None:
        target.pop(DISPLAY_ENV, None)
    else:
        target[DISPLAY_ENV] = session.previous_display


def child_environment(
    display: DisplayIdentifier | str,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return a copy of ``base`` (default: ``os.environ``) with ``DISPLAY`` set."""
    env = dict(os.environ if base is None else base)
    env[DISPLAY_ENV] = str(display)
    return env


__all__ = [
    "DISPLAY_ENV",
    "BuildContext",
    "set_environment_variable",
    "publish_display",
    "restore_display",
    "child_environment",
]
