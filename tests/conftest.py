"""Root test configuration: session-level cleanup of runtime artifacts"""

from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["awesync.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Keep real tokens and AWESYNC_* settings out of tests."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    for name in ("DB_URL", "GITHUB_TOKEN", "LOG_LEVEL", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(f"AWESYNC_{name}", raising=False)
