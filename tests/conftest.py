import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'xvfbctl' and tests/ importable for 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_xvfbctl_caches
from xvfbctl.core.stdlib_logging import reset_stdlib_logging_for_tests


@pytest.fixture(autouse=True)
def _isolate_xvfbctl_env(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, project root and DISPLAY from leaking between tests."""
    for key in list(os.environ):
        if key.startswith("XVFBCTL_"):
            monkeypatch.delenv(key, raising=False)
    user_dir = tmp_path_factory.mktemp("user-config")
    monkeypatch.setenv("XVFBCTL_paths__user_config_dir", str(user_dir))
    monkeypatch.delenv("DISPLAY", raising=False)

    reset_xvfbctl_caches()
    yield
    reset_xvfbctl_caches()
    reset_stdlib_logging_for_tests()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty project directory used as the xvfbctl project root."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.setenv("XVFBCTL_PROJECT_ROOT", str(root))
    return root
