"""pytest plugin: run the test session on a virtual X display.

Enable with ``pytest --xvfb`` or ``xvfb = true`` in the ini file. The display
is started in ``pytest_configure`` (so ``DISPLAY`` is set before any test
module is imported) and stopped in ``pytest_unconfigure``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from xvfbctl.core.config.domains import XvfbConfig
from xvfbctl.core.display import XvfbRunner, XvfbSession, XvfbSettings
from xvfbctl.core.exceptions import XvfbError

logger = logging.getLogger(__name__)

runner_key = pytest.StashKey[XvfbRunner]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("xvfb", "virtual X display")
    group.addoption(
        "--xvfb",
        action="store_true",
        dest="xvfb",
        default=None,
        help="Start a virtual X display for the test session",
    )
    group.addoption(
        "--no-xvfb",
        action="store_false",
        dest="xvfb",
        help="Do not start a virtual X display even if enabled in the ini file",
    )
    group.addoption(
        "--xvfb-display",
        dest="xvfb_display",
        default=None,
        help="Use this display (e.g. ':99') instead of searching for a free one",
    )
    group.addoption(
        "--xvfb-arg-line",
        dest="xvfb_arg_line",
        default=None,
        help="Extra display server arguments as one shell-quoted string",
    )
    parser.addini("xvfb", type="bool", default=False, help="Start a virtual X display for the test session")


def _enabled(config: pytest.Config) -> bool:
    option = config.getoption("xvfb")
    if option is not None:
        return bool(option)
    return bool(config.getini("xvfb"))


def settings_for(config: pytest.Config) -> XvfbSettings:
    section: dict[str, Any] = dict(XvfbConfig(repo_root=Path(config.rootpath)).section)
    display = config.getoption("xvfb_display")
    if display:
        section["display"] = display
    arg_line = config.getoption("xvfb_arg_line")
    if arg_line:
        section["arg_line"] = arg_line
    # Tests and the GUI toolkits they import read DISPLAY from the environment.
    section["set_environment"] = True
    return XvfbSettings.from_raw(section)


def pytest_configure(config: pytest.Config) -> None:
    if not _enabled(config):
        return
    try:
        settings = settings_for(config)
        runner = XvfbRunner(settings)
        runner.run()
    except (XvfbError, ValueError, OSError) as exc:
        raise pytest.UsageError(f"xvfbctl: could not start a virtual display: {exc}") from exc
    config.stash[runner_key] = runner


def pytest_unconfigure(config: pytest.Config) -> None:
    runner = config.stash.get(runner_key, None)
    if runner is None:
        return
    runner.stop()
    del config.stash[runner_key]


def pytest_report_header(config: pytest.Config) -> str | None:
    runner = config.stash.get(runner_key, None)
    session = runner.session if runner is not None else None
    if session is None:
        return None
    pid = session.server.pid if session.server else "?"
    return f"xvfb: display {session.display} (pid {pid})"


@pytest.fixture(scope="session")
def xvfb_session(pytestconfig: pytest.Config) -> XvfbSession:
    """The running display session; skips the test when none was started."""
    runner = pytestconfig.stash.get(runner_key, None)
    session = runner.session if runner is not None else None
    if session is None:
        pytest.skip("no virtual display running (enable with --xvfb)")
    return session


@pytest.fixture(scope="session")
def xvfb_display(xvfb_session: XvfbSession) -> str:
    return str(xvfb_session.display)


__all__ = [
    "runner_key",
    "settings_for",
    "pytest_addoption",
    "pytest_configure",
    "pytest_unconfigure",
    "pytest_report_header",
    "xvfb_session",
    "xvfb_display",
]
