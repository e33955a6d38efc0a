"""
Todo repository
Data-access layer between the service and the database
Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/
"""
import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import StoreError
from app.models.todo import Todo, TodoDraft, TodoRecord
from app.services.todo_query import SortField, SortKey, TodoPredicate

logger = logging.getLogger(__name__)


def new_todo_id() -> str:
    """
    24 hex characters: 4 bytes of Unix time followed by 8 random bytes
    """
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


class TodoRepository(Protocol):
    """
    Storage operations for todos

    Every method either succeeds or raises StoreError
    """

    async def create(self, draft: TodoDraft) -> TodoRecord: ...

    async def get_by_id(self, todo_id: str) -> Optional[TodoRecord]: ...

    async def list(
        self,
        predicate: TodoPredicate,
        order: Sequence[SortKey],
        skip: int,
        limit: int,
    ) -> list[TodoRecord]: ...

    async def count(self, predicate: TodoPredicate) -> int: ...

    async def update(self, record: TodoRecord) -> Optional[TodoRecord]: ...

    async def delete(self, todo_id: str) -> bool: ...

    async def delete_where(self, predicate: TodoPredicate) -> int: ...

    async def priority_breakdown(self) -> dict[str, int]: ...


_SORT_COLUMNS = {
    SortField.CREATED_AT: Todo.created_at,
    SortField.LAST_MODIFIED: Todo.last_modified,
    SortField.PRIORITY_RANK: Todo.priority_rank,
}


def _conditions(predicate: TodoPredicate) -> list:
    conditions = []
    if predicate.completed is not None:
        conditions.append(Todo.completed == predicate.completed)
    if predicate.priority is not None:
        conditions.append(Todo.priority == predicate.priority.value)
    return conditions


class SQLAlchemyTodoRepository:
    """
    TodoRepository backed by SQLAlchemy's asyncio extension

    Each call runs in its own session and transaction, so independent
    calls can be awaited concurrently
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Session that commits on success and rolls back on error
        Database failures are re-raised as StoreError
        """
        try:
            async with self._session_maker() as session, session.begin():
                yield session
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            logger.error(f"Database operation failed: {type(e).__name__}: {e}")
            raise StoreError(error=str(e)) from e

    async def create(self, draft: TodoDraft) -> TodoRecord:
        todo = Todo(
            id=new_todo_id(),
            text=draft.text,
            completed=draft.completed,
            priority=draft.priority.value,
            category=draft.category,
            due_date=draft.due_date,
            created_at=draft.created_at,
            completed_at=draft.completed_at,
            last_modified=draft.last_modified,
        )
        async with self._transaction() as session:
            session.add(todo)
            await session.flush()
        logger.debug(f"Inserted todo {todo.id}")
        return todo.to_record()

    async def get_by_id(self, todo_id: str) -> Optional[TodoRecord]:
        async with self._transaction() as session:
            todo = await session.get(Todo, todo_id)
            return todo.to_record() if todo else None

    async def list(
        self,
        predicate: TodoPredicate,
        order: Sequence[SortKey],
        skip: int,
        limit: int,
    ) -> list[TodoRecord]:
        order_by = []
        for key in order:
            column = _SORT_COLUMNS[key.field]
            order_by.append(column.desc() if key.descending else column.asc())
        # Stable pagination when every sort key ties
        order_by.append(Todo.id.desc())

        query = (
            select(Todo)
            .where(*_conditions(predicate))
            .order_by(*order_by)
            .offset(skip)
            .limit(limit)
        )
        async with self._transaction() as session:
            result = await session.execute(query)
            return [todo.to_record() for todo in result.scalars().all()]

    async def count(self, predicate: TodoPredicate) -> int:
        query = select(func.count()).select_from(Todo).where(*_conditions(predicate))
        async with self._transaction() as session:
            return (await session.execute(query)).scalar_one()

    async def update(self, record: TodoRecord) -> Optional[TodoRecord]:
        """
        Overwrite every mutable column of the todo with the record's values

        Returns None when the row no longer exists. There is no version
        check: a concurrent writer that read the same row is overwritten.
        """
        stmt = (
            update(Todo)
            .where(Todo.id == record.id)
            .values(
                text=record.text,
                completed=record.completed,
                priority=record.priority.value,
                category=record.category,
                due_date=record.due_date,
                completed_at=record.completed_at,
                last_modified=record.last_modified,
            )
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
        if result.rowcount == 0:
            return None
        return record

    async def delete(self, todo_id: str) -> bool:
        async with self._transaction() as session:
            result = await session.execute(delete(Todo).where(Todo.id == todo_id))
        return result.rowcount > 0

    async def delete_where(self, predicate: TodoPredicate) -> int:
        async with self._transaction() as session:
            result = await session.execute(delete(Todo).where(*_conditions(predicate)))
        return result.rowcount

    async def priority_breakdown(self) -> dict[str, int]:
        query = select(Todo.priority, func.count()).group_by(Todo.priority)
        async with self._transaction() as session:
            rows = (await session.execute(query)).all()
        return {priority: count for priority, count in rows}
