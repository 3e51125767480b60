"""
Pytest configuration and fixtures for task tracker tests.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tracker.main import app
from tracker.services.persistence import FileBackedTaskStore
from tracker.services.store import TaskStore
from tracker.storage import get_store


@pytest.fixture
def store() -> TaskStore:
    """A fresh in-memory store; ids start at 1."""
    return TaskStore()


@pytest.fixture
def data_file(tmp_path):
    """Path of a CSV data file inside the test's tmp dir (not created)."""
    return tmp_path / "tasks.csv"


@pytest.fixture
def file_store(data_file) -> FileBackedTaskStore:
    """A file-backed store writing to data_file."""
    return FileBackedTaskStore.load_from_file(data_file)


@pytest_asyncio.fixture
async def client(store):
    """Async test client wired to the per-test store."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
