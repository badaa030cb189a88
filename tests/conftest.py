"""
Pytest configuration and fixtures for the Infinity Todo tests.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from todo_api.config import AppSettings
from todo_api.database import Database, get_database
from todo_api.main import create_app
from todo_api.schemas import TodoCreate
from todo_api.services import todos as todo_service


@pytest.fixture
def app_settings(tmp_path):
    return AppSettings(database_path=tmp_path / "todo.db", cors_origins=["*"])


@pytest_asyncio.fixture(scope="function")
async def database(app_settings):
    """An opened store on a fresh file per test."""
    db = Database(app_settings.database_path)
    await db.open()
    yield db
    await db.close()


@pytest_asyncio.fixture(scope="function")
async def client(app_settings, database):
    """Async test client wired to the test store."""
    app = create_app(app_settings)
    app.dependency_overrides[get_database] = lambda: database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_todo(database):
    """Create a task directly through the store and return its id."""

    async def _make(title: str, parent_id: int | None = None, **fields) -> int:
        async with database.session() as session:
            todo = await todo_service.create_todo(
                session, TodoCreate(title=title, parent_id=parent_id, **fields)
            )
            return todo.id

    return _make


@pytest.fixture
def snapshot(database):
    """Current rows as comparable tuples, in list order."""

    async def _snapshot() -> list[tuple]:
        async with database.session() as session:
            todos = await todo_service.list_todos(session)
        return [
            (t.id, t.parent_id, t.title, t.completed, t.sort_order,
             t.description, t.priority, t.due_date)
            for t in todos
        ]

    return _snapshot
