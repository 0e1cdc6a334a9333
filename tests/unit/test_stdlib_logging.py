from __future__ import annotations

import logging
from pathlib import Path

import pytest

from xvfbctl.cli._dispatcher import main
from xvfbctl.core.stdlib_logging import configure_console_logging, configure_stdlib_logging


def test_console_verbosity_levels() -> None:
    assert configure_console_logging(0).level == logging.WARNING
    assert configure_console_logging(1).level == logging.INFO
    assert configure_console_logging(3).level == logging.DEBUG

    # Reconfiguring replaces the handler instead of stacking another one.
    handler = configure_console_logging(0)
    assert sum(1 for h in logging.getLogger().handlers if h is handler) == 1


def test_file_logging_writes_records(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "xvfbctl.log"
    configure_stdlib_logging(log_path=log_path, level="DEBUG")

    logging.getLogger("xvfbctl.test").info("display ready")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "INFO xvfbctl.test: display ready" in text


def test_cli_honours_configured_log_file(project_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = project_root / ".xvfbctl" / "config"
    cfg.mkdir(parents=True)
    (cfg / "logging.yaml").write_text("logging:\n  level: DEBUG\n  file: xvfbctl.log\n", encoding="utf-8")

    assert main(["status", "--repo-root", str(project_root)]) == 0
    capsys.readouterr()

    assert (project_root / "xvfbctl.log").exists()
