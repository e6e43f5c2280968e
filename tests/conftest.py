"""Shared pytest configuration and fixtures for tests."""

import sys
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from chyra.core import repository, service  # noqa: E402


ADMIN = "alice"
MEMBER = "bob"
OUTSIDER = "mallory"


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use temporary database for all tests."""
    db_path = tmp_path / "test_chyra.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setattr(repository, "DB_DIR", tmp_path)
    yield db_path


@pytest.fixture
def log_messages():
    """Capture loguru records (WARNING and above) as formatted strings."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def workspace():
    """Workspace administered by ADMIN with MEMBER joined."""
    ws = service.create_workspace(ADMIN, "Acme")
    service.join_workspace(MEMBER, ws.id, ws.invite_code)
    return ws


@pytest.fixture
def project(workspace):
    return service.create_project(ADMIN, workspace.id, "Website", "Marketing site")
