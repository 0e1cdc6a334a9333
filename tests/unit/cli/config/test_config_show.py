from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from xvfbctl.cli._dispatcher import main


def test_config_show_key_as_json(project_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["config", "show", "xvfb.port_base", "--json", "--repo-root", str(project_root)])

    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {"xvfb.port_base": 6000}


def test_config_show_reflects_env_override(
    project_root: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("XVFBCTL_xvfb__binary", "/opt/Xvfb")

    rc = main(["config", "show", "xvfb", "--format", "yaml", "--repo-root", str(project_root)])

    assert rc == 0
    data = yaml.safe_load(capsys.readouterr().out)
    assert data["xvfb"]["binary"] == "/opt/Xvfb"


def test_config_show_missing_key(project_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["config", "show", "xvfb.nope", "--json", "--repo-root", str(project_root)])

    assert rc == 1
    assert json.loads(capsys.readouterr().err)["error"] == "config_key_not_found"


def test_config_show_reports_invalid_config(project_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = project_root / ".xvfbctl" / "config"
    cfg.mkdir(parents=True)
    (cfg / "xvfb.yaml").write_text("xvfb:\n  retry_on_conflict: sometimes\n", encoding="utf-8")

    rc = main(["config", "show", "--repo-root", str(project_root)])

    assert rc == 1
    assert "xvfb.retry_on_conflict" in capsys.readouterr().err
