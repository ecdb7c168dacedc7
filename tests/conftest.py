"""Pytest fixtures shared across the adas_scrub test suite."""

import shutil
from pathlib import Path

import pytest

from adas_scrub import startup

DEMO_WORKSPACE = Path(__file__).resolve().parents[1] / "workspaces" / "demo"


@pytest.fixture
def demo_workspace(tmp_path):
    """A writable copy of the demo workspace."""
    if not DEMO_WORKSPACE.exists():
        pytest.skip("Demo workspace not available")
    target = tmp_path / "workspace"
    shutil.copytree(DEMO_WORKSPACE, target)
    return target


@pytest.fixture(autouse=True)
def _reset_startup_state():
    """Each test resolves its own workspace."""
    startup.reset()
    yield
    startup.reset()
