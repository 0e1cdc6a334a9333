from __future__ import annotations

import argparse
import os
from pathlib import Path

import pytest

from helpers.xvfb import free_port, write_stub_server


@pytest.fixture
def exec_options(project_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> list[str]:
    monkeypatch.setenv("XVFBCTL_xvfb__x_lock_dir", "null")
    return [
        "--binary", str(write_stub_server(tmp_path / "bin")),
        "--port-base", str(free_port()),
        "--display-number", "0",
        "--search-width", "0",
        "--lock-dir", str(tmp_path / "locks"),
        "--output", "devnull",
        "--shutdown-timeout", "2",
        "--repo-root", str(project_root),
    ]


def _parse(argv: list[str]) -> argparse.Namespace:
    from xvfbctl.cli.commands import exec as exec_cmd

    parser = argparse.ArgumentParser()
    exec_cmd.register_args(parser)
    return parser.parse_args(argv)


def test_exec_returns_command_exit_status(tmp_path: Path, exec_options: list[str]) -> None:
    from xvfbctl.cli.commands import exec as exec_cmd

    out = tmp_path / "display.txt"
    script = f'printf "%s" "$DISPLAY" > {out}; exit 7'
    rc = exec_cmd.main(_parse([*exec_options, "--", "sh", "-c", script]))

    assert rc == 7
    assert out.read_text(encoding="utf-8") == ":0"
    # The display is gone and this process's environment was not touched.
    assert list((tmp_path / "locks").iterdir()) == []
    assert "DISPLAY" not in os.environ


def test_exec_missing_command_returns_127(exec_options: list[str], tmp_path: Path) -> None:
    from xvfbctl.cli.commands import exec as exec_cmd

    rc = exec_cmd.main(_parse([*exec_options, "--", str(tmp_path / "nope")]))

    assert rc == 127
    assert list((tmp_path / "locks").iterdir()) == []


def test_exec_without_command_is_a_usage_error(exec_options: list[str]) -> None:
    from xvfbctl.cli.commands import exec as exec_cmd

    assert exec_cmd.main(_parse(exec_options)) == 2
