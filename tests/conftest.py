from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import RecordingPresenter, StubProvider  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the workspace at a per-test directory and drop config overrides."""

    home = tmp_path / "study-aid-data"
    monkeypatch.setenv("STUDY_AID_DATA_HOME", str(home))
    monkeypatch.delenv("STUDY_AID_CONFIG", raising=False)
    return home


@pytest.fixture
def workspace_home(_isolated_workspace: Path) -> Path:
    return _isolated_workspace


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def provider() -> StubProvider:
    """A provider stub with an empty queue; tests call ``queue``."""

    return StubProvider()
