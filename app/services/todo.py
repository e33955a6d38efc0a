"""
Todo service layer
Business logic for todo operations
Reference: https://fastapi.tiangolo.com/tutorial/sql-databases/
"""
import asyncio
import logging
import math
import re
from typing import Any, Mapping, Optional

from app.core.exceptions import MalformedIdError, NotFoundError
from app.models.todo import TodoRecord
from app.repositories.todo import TodoRepository
from app.services import todo_lifecycle
from app.services.todo_query import TodoPage, TodoPredicate, build_list_plan, finish_page

logger = logging.getLogger(__name__)

TODO_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def check_todo_id(todo_id: str) -> str:
    """
    Structural ID check, done before any database access

    Raises:
        MalformedIdError: if the ID is not 24 hex characters
    """
    if not TODO_ID_PATTERN.fullmatch(todo_id):
        raise MalformedIdError()
    return todo_id.lower()


def completion_rate(completed: int, total: int) -> int:
    """Whole percentage of completed todos, halves rounded up; 0 for no todos"""
    if total <= 0:
        return 0
    return math.floor(completed * 100 / total + 0.5)


class TodoService:
    """
    Service class for todo-related business logic
    Validates with the lifecycle rules, then reads or writes through the repository
    """

    def __init__(self, repository: TodoRepository):
        self.repository = repository

    async def list_todos(
        self,
        filter: Optional[str] = None,
        priority: Optional[str] = None,
        sort_by: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> TodoPage:
        """
        Retrieve one page of todos

        The page and the total count are read concurrently
        and are not guaranteed to come from the same snapshot.
        """
        plan = build_list_plan(filter=filter, priority=priority, sort_by=sort_by, page=page, limit=limit)
        if plan.past_last_row:
            # No page this far out can hold rows; only the total is needed
            total = await self.repository.count(plan.predicate)
            return finish_page(plan, [], total)
        items, total = await asyncio.gather(
            self.repository.list(plan.predicate, plan.order, plan.skip, plan.limit),
            self.repository.count(plan.predicate),
        )
        return finish_page(plan, items, total)

    async def get_todo(self, todo_id: str) -> TodoRecord:
        """
        Retrieve a single todo by ID

        Raises:
            MalformedIdError: if the ID is malformed
            NotFoundError: if no todo has this ID
        """
        todo_id = check_todo_id(todo_id)
        todo = await self.repository.get_by_id(todo_id)
        if todo is None:
            raise NotFoundError()
        return todo

    async def create_todo(self, data: Mapping[str, Any]) -> TodoRecord:
        draft = todo_lifecycle.validate_create(data)
        todo = await self.repository.create(draft)
        logger.info(f"Created todo {todo.id} (priority={todo.priority.value})")
        return todo

    async def _save(self, todo: TodoRecord) -> TodoRecord:
        saved = await self.repository.update(todo)
        if saved is None:
            # Deleted between the read and the write
            raise NotFoundError()
        return saved

    async def update_todo(self, todo_id: str, patch: Mapping[str, Any]) -> TodoRecord:
        """
        Partially update a todo (read, apply, write back)

        Concurrent updates of the same todo are not isolated:
        the last write wins.
        """
        todo_id = check_todo_id(todo_id)
        # Validate before reading so bad input never reaches the database
        fields = todo_lifecycle.parse_update(patch)
        existing = await self.get_todo(todo_id)
        updated = todo_lifecycle.apply_update(existing, fields)
        return await self._save(updated)

    async def update_priority(self, todo_id: str, data: Mapping[str, Any]) -> TodoRecord:
        todo_id = check_todo_id(todo_id)
        fields = todo_lifecycle.parse_priority_change(data)
        existing = await self.get_todo(todo_id)
        updated = todo_lifecycle.change_priority(existing, fields)
        return await self._save(updated)

    async def toggle_todo(self, todo_id: str) -> TodoRecord:
        existing = await self.get_todo(todo_id)
        toggled = todo_lifecycle.toggle(existing)
        return await self._save(toggled)

    async def delete_todo(self, todo_id: str) -> str:
        """
        Delete a todo permanently

        Returns:
            The deleted todo's ID
        """
        todo_id = check_todo_id(todo_id)
        if not await self.repository.delete(todo_id):
            raise NotFoundError()
        return todo_id

    async def delete_completed(self) -> int:
        """Delete every completed todo and return how many were removed"""
        return await self.repository.delete_where(TodoPredicate(completed=True))

    async def get_stats(self) -> dict[str, Any]:
        total, completed, active, breakdown = await asyncio.gather(
            self.repository.count(TodoPredicate()),
            self.repository.count(TodoPredicate(completed=True)),
            self.repository.count(TodoPredicate(completed=False)),
            self.repository.priority_breakdown(),
        )
        return {
            "total": total,
            "active": active,
            "completed": completed,
            "completion_rate": completion_rate(completed, total),
            "priority_breakdown": breakdown,
        }
