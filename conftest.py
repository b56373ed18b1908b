"""
Pytest configuration and shared fixtures for the FlowSync test suite.

This module provides:
- Temporary database setup and teardown
- Model-layer patching onto the temporary database
- FastAPI test client
- Snapshot record factories
"""

import pytest
import tempfile
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator
import sys
import os

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

# Keep the module-level database out of the working tree during tests
_session_dir = tempfile.mkdtemp(prefix="flowsync-tests-")
os.environ["FLOWSYNC_DB_PATH"] = str(Path(_session_dir) / "session.db")
os.environ["FLOWSYNC_LOG_FILE"] = str(Path(_session_dir) / "flowsync.log")
os.environ["FLOWSYNC_TIMEZONE"] = "UTC"

from database.models import DatabaseConnection
from insights.schema import Appointment, Event, Task


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db_path(temp_dir: Path) -> Path:
    """Create a temporary database file path."""
    return temp_dir / "test_flowsync.db"


@pytest.fixture(scope="function")
def db_connection(test_db_path: Path):
    """
    Create a test database connection with the schema applied.

    Yields a DatabaseConnection instance and closes it afterwards.
    """
    conn = DatabaseConnection(str(test_db_path))

    yield conn

    conn.close()


@pytest.fixture(scope="function")
def patched_db(db_connection, monkeypatch):
    """Point the model layer's global db at the test database."""
    import database.models as models_module
    monkeypatch.setattr(models_module, "db", db_connection)
    return db_connection


@pytest.fixture(scope="function")
def fastapi_client(patched_db):
    """
    Create a FastAPI test client backed by the test database.

    The insights feed reads live data and starts with no last-known-good state.
    """
    from fastapi.testclient import TestClient
    from services import data_sources, insights_service

    data_sources.set_data_source(data_sources.LiveDataSource())
    insights_service.reset_insights_service()

    from backend import app

    with TestClient(app) as client:
        yield client

    insights_service.reset_insights_service()
    data_sources.set_data_source(None)


@pytest.fixture
def day() -> datetime:
    """Fixed reference day (UTC midnight) for snapshot-based tests."""
    return datetime(2025, 3, 12, tzinfo=timezone.utc)


@pytest.fixture
def make_event(day):
    """Factory for events on the reference day; times are 'HH:MM' strings."""
    def _make(event_id, start, end, category="meeting", title=None):
        def at(clock):
            hours, minutes = (int(part) for part in clock.split(":"))
            return day.replace(hour=hours, minute=minutes)
        return Event(str(event_id), title or f"Event {event_id}", at(start), at(end), category)
    return _make


@pytest.fixture
def make_task():
    def _make(task_id, priority="medium", status="todo", due=None, title=None):
        return Task(str(task_id), title or f"Task {task_id}", priority, status, due=due)
    return _make


@pytest.fixture
def make_appointment(day):
    def _make(appointment_id, status="pending"):
        return Appointment(str(appointment_id), "Jordan Lee", "Strategy Session",
                           day.replace(hour=15), status, 60)
    return _make


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "unit: Unit tests with no I/O")
    config.addinivalue_line("markers", "api: HTTP route tests through the FastAPI test client")

    os.environ["TESTING"] = "1"


def pytest_unconfigure(config):
    """Cleanup after all tests."""
    os.environ.pop("TESTING", None)
    shutil.rmtree(_session_dir, ignore_errors=True)
