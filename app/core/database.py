"""
Database connection and session management
Uses SQLAlchemy async engine (asyncpg for PostgreSQL, aiosqlite for SQLite)
Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import settings


# Validate DATABASE_URL is set
if not settings.DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Please set it in your .env file or environment variables."
    )


def _connect_args(database_url: str) -> dict[str, Any]:
    """
    Driver-specific connection arguments

    asyncpg takes a command timeout and server settings;
    aiosqlite rejects both
    Reference: https://magicstack.github.io/asyncpg/current/api/index.html#connection
    """
    driver = make_url(database_url).drivername
    if driver.endswith("+asyncpg"):
        return {
            "command_timeout": settings.DB_COMMAND_TIMEOUT,
            "server_settings": {
                "application_name": "todo_api",
            },
        }
    return {}


def create_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL

    Using NullPool - each session gets a fresh connection, so the concurrent
    page/count reads of the list endpoint never share one
    Reference: https://docs.sqlalchemy.org/en/20/core/pooling.html#switching-pool-implementations
    """
    return create_async_engine(
        database_url,
        echo=settings.DB_ECHO,  # Set DB_ECHO=true for SQL query logging
        poolclass=NullPool,
        connect_args=_connect_args(database_url),
    )


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory bound to an engine
    Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html#session-basics
    """
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,  # Keep objects accessible after commit
        autoflush=False,
    )


engine = create_engine(settings.DATABASE_URL)
async_session_maker = create_session_maker(engine)


# Base class for all database models
# All models should inherit from this class
# Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models"""
    pass


# Dependency to get the session factory
# Repositories open one short-lived session per operation
# Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Dependency function that provides the application's session factory
    Overridden in tests to point at a throwaway database
    """
    return async_session_maker
