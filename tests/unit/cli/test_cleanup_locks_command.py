from __future__ import annotations

import argparse
import json
import os
import time
from pathlib import Path

import pytest


def _parse(argv: list[str]) -> argparse.Namespace:
    from xvfbctl.cli.commands import cleanup_locks

    parser = argparse.ArgumentParser()
    cleanup_locks.register_args(parser)
    return parser.parse_args(argv)


@pytest.fixture
def lock_dir(tmp_path: Path) -> Path:
    d = tmp_path / "locks"
    d.mkdir()
    # Owner alive: kept.
    (d / ".xvfbctl_display6020").write_text(json.dumps({"pid": os.getpid()}), encoding="utf-8")
    # No metadata and old: stale.
    old = d / ".xvfbctl_display6021"
    old.write_text("", encoding="utf-8")
    past = time.time() - 7200
    os.utime(old, (past, past))
    # Unrelated file: ignored.
    (d / "other.lock").write_text("", encoding="utf-8")
    return d


def test_cleanup_locks_dry_run_lists_stale_only(
    project_root: Path, lock_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    from xvfbctl.cli.commands import cleanup_locks

    argv = ["--lock-dir", str(lock_dir), "--dry-run", "--json", "--repo-root", str(project_root)]
    assert cleanup_locks.main(_parse(argv)) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["dry_run"] is True
    assert [Path(lock["path"]).name for lock in data["stale_locks"]] == [".xvfbctl_display6021"]
    assert (lock_dir / ".xvfbctl_display6021").exists()


def test_cleanup_locks_removes_stale(
    project_root: Path, lock_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    from xvfbctl.cli.commands import cleanup_locks

    argv = ["--lock-dir", str(lock_dir), "--json", "--repo-root", str(project_root)]
    assert cleanup_locks.main(_parse(argv)) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["removed"] == 1
    assert sorted(p.name for p in lock_dir.iterdir()) == [".xvfbctl_display6020", "other.lock"]


def test_cleanup_locks_honours_lock_prefix(
    project_root: Path, lock_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    from xvfbctl.cli.commands import cleanup_locks

    custom = lock_dir / ".ci_display6030"
    custom.write_text("", encoding="utf-8")
    past = time.time() - 7200
    os.utime(custom, (past, past))

    argv = ["--lock-dir", str(lock_dir), "--lock-prefix", ".ci_display", "--json", "--repo-root", str(project_root)]
    assert cleanup_locks.main(_parse(argv)) == 0

    data = json.loads(capsys.readouterr().out)
    assert [Path(p).name for p in data["locks"]] == [".ci_display6030"]
    # Lockfiles with the default prefix are not considered.
    assert (lock_dir / ".xvfbctl_display6021").exists()
