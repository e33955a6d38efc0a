"""
Shared FastAPI dependencies
Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_session_maker
from app.repositories.todo import SQLAlchemyTodoRepository, TodoRepository
from app.services.todo import TodoService, check_todo_id


def get_todo_repository(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> TodoRepository:
    """
    Dependency to get the todo repository

    Tests override this to inject an in-memory repository
    """
    return SQLAlchemyTodoRepository(session_maker)


def get_todo_service(
    repository: TodoRepository = Depends(get_todo_repository),
) -> TodoService:
    """Dependency to get a TodoService bound to the request's repository"""
    return TodoService(repository)


def valid_todo_id(
    todo_id: str = Path(..., description="Todo ID (24 hex characters)"),
) -> str:
    """
    Path dependency that rejects malformed IDs before the route body runs

    Usage:
        @router.get("/{todo_id}")
        async def get_todo(todo_id: str = Depends(valid_todo_id)): ...

    Raises:
        MalformedIdError: 400 if the ID is not 24 hex characters
    """
    return check_todo_id(todo_id)
