# tests/conftest.py

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from pathlib import Path

# Settings are read at import time; point them at a throwaway database first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import Base, create_engine, create_session_maker, get_session_maker
from app.core.dependencies import get_todo_repository
from app.main import app
from app.repositories.todo import SQLAlchemyTodoRepository

from .fakes import InMemoryTodoRepository


@pytest_asyncio.fixture()
async def session_maker(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory for a fresh SQLite file per test.

    A file (not :memory:) so that the concurrent page/count reads each get
    their own connection to the same data.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'todos.sqlite3'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_maker(engine)
    await engine.dispose()


@pytest.fixture()
def repository(session_maker: async_sessionmaker[AsyncSession]) -> SQLAlchemyTodoRepository:
    return SQLAlchemyTodoRepository(session_maker)


@pytest_asyncio.fixture()
async def client(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client for the app, backed by the per-test SQLite database."""
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def fake_repository() -> InMemoryTodoRepository:
    return InMemoryTodoRepository()


@pytest_asyncio.fixture()
async def fake_client(fake_repository: InMemoryTodoRepository) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client for the app, backed by the recording in-memory repository."""
    app.dependency_overrides[get_todo_repository] = lambda: fake_repository
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
