"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from websync_core.models import TabDescriptor  # noqa: E402


@pytest.fixture
def project_dir(tmp_path):
    """Create a project with the conventional css/ and js/ directories."""
    (tmp_path / "css").mkdir()
    (tmp_path / "js").mkdir()
    return tmp_path


@pytest.fixture
def fake_browser():
    """Browser client double that records refresh calls."""
    browser = MagicMock()
    browser.refresh.return_value = None
    return browser


def make_tab(tab_id="1", url="http://localhost:8080/app", ws_url="ws://localhost:9222/devtools/page/1"):
    """Build a TabDescriptor for tests."""
    return TabDescriptor(id=tab_id, title=f"Tab {tab_id}", url=url, websocket_debugger_url=ws_url)
