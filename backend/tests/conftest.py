# tests/conftest.py — Shared test fixtures
import os
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["ENVIRONMENT"] = "test"

from models import Base, BoardColumn, Task
from database import build_engine, get_db_session
from main import app
from taskboard.observability import RecordingObserver
from taskboard.service import BoardService

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = build_engine(TEST_DB_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory):
    """HTTP test client with overridden DB dependency"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def observer():
    return RecordingObserver(request_id="test")


@pytest_asyncio.fixture
async def service(db_session, observer):
    return BoardService(db_session, observer)


@pytest_asyncio.fixture
async def board(service):
    """An empty board"""
    return await service.create_board("Sprint Board")


@pytest_asyncio.fixture
async def columns(service, board):
    """Three appended columns: To Do, Doing, Done"""
    return [
        await service.create_column(board.id, "To Do"),
        await service.create_column(board.id, "Doing"),
        await service.create_column(board.id, "Done"),
    ]


async def insert_task(db_session, column_id: str, title: str, position: int,
                      created_at: datetime, task_id: str = None, description: str = None) -> Task:
    """Insert a task row with a chosen creation time (tie-break and age tests)"""
    task = Task(
        column_id=column_id,
        title=title,
        description=description,
        position=position,
        created_at=created_at,
        updated_at=created_at,
    )
    if task_id is not None:
        task.id = task_id
    db_session.add(task)
    await db_session.commit()
    return task


async def insert_column(db_session, board_id: str, title: str, position: int,
                        created_at: datetime, column_id: str = None) -> BoardColumn:
    column = BoardColumn(
        board_id=board_id,
        title=title,
        position=position,
        created_at=created_at,
        updated_at=created_at,
    )
    if column_id is not None:
        column.id = column_id
    db_session.add(column)
    await db_session.commit()
    return column


def minutes_ago(minutes: float, now: datetime = FIXED_NOW) -> datetime:
    return now - timedelta(minutes=minutes)
