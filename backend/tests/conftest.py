"""
Notekeeper Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── ctx:           RequestContext with a generous deadline
    ├── memory_store:  InMemoryNoteStore
    ├── sql_store:     SQLNoteStore over a throwaway SQLite file (aiosqlite)
    ├── note_store:    parametrized over both backends ("memory", "sql")
    ├── test_client:   HTTPX AsyncClient bound to an app serving `note_store`
    └── make_client:   builds a client around any store (mocks included)
"""

import os

# Override settings for testing BEFORE any notekeeper imports
os.environ["NOTE_STORE"] = "memory"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["REQUEST_TIMEOUT_SECONDS"] = "5"

from contextlib import asynccontextmanager  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from notekeeper.core.context import RequestContext  # noqa: E402
from notekeeper.database import create_schema  # noqa: E402
from notekeeper.services.memory_store import InMemoryNoteStore  # noqa: E402
from notekeeper.services.sql_store import SQLNoteStore  # noqa: E402


@pytest.fixture
def ctx():
    """A request context with a deadline no test operation should reach."""
    return RequestContext.with_timeout(30, request_id="test")


@pytest.fixture
def sqlite_url(tmp_path):
    """URL of a fresh SQLite database file inside the test's tmp dir."""
    return f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}"


@pytest_asyncio.fixture
async def memory_store():
    store = InMemoryNoteStore()
    yield store
    await store.shutdown()


@pytest_asyncio.fixture
async def sql_store(sqlite_url):
    """
    A real SQLNoteStore with the notes table already created.

    SQLite stands in for PostgreSQL here: the store issues the same
    statements (including UPDATE ... RETURNING) on both.
    """
    store = SQLNoteStore.from_url(sqlite_url)
    await create_schema(store.engine)
    yield store
    await store.shutdown()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def note_store(request, sqlite_url):
    """Each test using this fixture runs once per backend."""
    if request.param == "memory":
        store = InMemoryNoteStore()
    else:
        store = SQLNoteStore.from_url(sqlite_url)
        await create_schema(store.engine)
    yield store
    await store.shutdown()


@pytest.fixture
def make_client():
    """
    Returns an async context manager building a client around a given store.

    Usage:
        async with make_client(store) as client:
            response = await client.get("/api/v1/notes")
    """
    from notekeeper.main import create_app

    @asynccontextmanager
    async def _make(store, raise_app_exceptions=True):
        app = create_app(note_store=store)
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    return _make


@pytest_asyncio.fixture
async def test_client(note_store, make_client):
    """HTTPX AsyncClient talking to an app served by `note_store`."""
    async with make_client(note_store) as client:
        yield client
