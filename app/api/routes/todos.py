"""
Todo API routes
CRUD, toggle and statistics endpoints for todos
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.api.schemas.todo import (
    DeletedTodo,
    ErrorEnvelope,
    TodoDeleteCompletedEnvelope,
    TodoDeleteEnvelope,
    TodoEnvelope,
    TodoListEnvelope,
    TodoMessageEnvelope,
    TodoResponse,
    TodoStats,
    TodoStatsEnvelope,
)
from app.core.dependencies import get_todo_service, valid_todo_id
from app.core.exceptions import StoreError, TodoAPIError
from app.services.todo import TodoService

logger = logging.getLogger(__name__)

# Create router for todo endpoints
router = APIRouter(
    prefix="/todos",
    tags=["todos"],  # Groups endpoints in API documentation
    responses={
        500: {"model": ErrorEnvelope, "description": "Database error"},
    },
)

ID_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Invalid todo ID format or validation error"},
    404: {"model": ErrorEnvelope, "description": "Todo not found"},
}


@contextmanager
def store_errors(message: str) -> Iterator[None]:
    """
    Re-raise failures inside the block as API errors

    Client errors pass through unchanged; database and unexpected errors
    become a 500 StoreError carrying `message` and the underlying error text
    """
    try:
        yield
    except StoreError as e:
        logger.error(f"{message}: {e.error}")
        raise StoreError(message, error=e.error) from e
    except TodoAPIError as e:
        logger.warning(f"{message}: {e.message}")
        raise
    except Exception as e:
        logger.error(f"{message}: {type(e).__name__}: {e}", exc_info=True)
        raise StoreError(message, error=str(e)) from e


@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List todos",
    description="Retrieve a page of todos with optional filtering and sorting",
    status_code=status.HTTP_200_OK,
)
async def list_todos(
    filter: Optional[str] = Query(None, description="all, active or completed"),
    sort_by: Optional[str] = Query(
        None, alias="sortBy", description="recent, oldest, priority or lastModified"
    ),
    priority: Optional[str] = Query(None, description="low, medium or high"),
    limit: int = Query(100, ge=1, description="Page size (values above 100 are clamped)"),
    page: int = Query(1, ge=1, description="1-based page number"),
    service: TodoService = Depends(get_todo_service),
) -> TodoListEnvelope:
    """
    Get a page of todos

    Supports:
    - Filtering by completion state and priority
    - Sorting by creation time, last modification or priority
    - Pagination via page and limit

    Unknown filter/sortBy/priority values fall back to the defaults.
    """
    logger.debug(
        f"GET /todos filter={filter} sortBy={sort_by} priority={priority} limit={limit} page={page}"
    )
    with store_errors("Error fetching todos"):
        result = await service.list_todos(
            filter=filter, priority=priority, sort_by=sort_by, page=page, limit=limit
        )
    return TodoListEnvelope(
        count=result.count,
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        data=[TodoResponse.model_validate(todo) for todo in result.items],
    )


@router.get(
    "/stats/summary",
    response_model=TodoStatsEnvelope,
    summary="Todo statistics",
    description="Counts by completion state and priority",
    status_code=status.HTTP_200_OK,
)
async def get_stats(
    service: TodoService = Depends(get_todo_service),
) -> TodoStatsEnvelope:
    with store_errors("Error fetching statistics"):
        stats = await service.get_stats()
    return TodoStatsEnvelope(data=TodoStats(**stats))


@router.get(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Get todo by ID",
    status_code=status.HTTP_200_OK,
    responses=ID_RESPONSES,
)
async def get_todo(
    todo_id: str = Depends(valid_todo_id),
    service: TodoService = Depends(get_todo_service),
) -> TodoEnvelope:
    """
    Get a single todo by ID

    Raises:
        MalformedIdError: 400 if the ID is not 24 hex characters
        NotFoundError: 404 if the todo does not exist
    """
    with store_errors("Error fetching todo"):
        todo = await service.get_todo(todo_id)
    return TodoEnvelope(data=TodoResponse.model_validate(todo))


@router.post(
    "",
    response_model=TodoMessageEnvelope,
    summary="Create todo",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorEnvelope, "description": "Validation error"}},
)
async def create_todo(
    payload: dict[str, Any] = Body(
        ...,
        examples=[{"text": "Buy milk", "priority": "high", "category": "errands"}],
    ),
    service: TodoService = Depends(get_todo_service),
) -> TodoMessageEnvelope:
    """
    Create a new todo

    **Defaults:**
    - priority defaults to "medium"
    - completed is always false on creation

    Raises:
        ValidationError: 400 listing every invalid field
    """
    with store_errors("Error creating todo"):
        todo = await service.create_todo(payload)
    return TodoMessageEnvelope(
        message="Todo created successfully", data=TodoResponse.model_validate(todo)
    )


@router.put(
    "/{todo_id}",
    response_model=TodoMessageEnvelope,
    summary="Update todo",
    description="Update the fields present in the body; null clears category and dueDate",
    status_code=status.HTTP_200_OK,
    responses=ID_RESPONSES,
)
async def update_todo(
    todo_id: str = Depends(valid_todo_id),
    payload: dict[str, Any] = Body(..., examples=[{"completed": True}]),
    service: TodoService = Depends(get_todo_service),
) -> TodoMessageEnvelope:
    """
    Update an existing todo

    Also used by clients to toggle completion or change priority
    with a single PUT.
    """
    with store_errors("Error updating todo"):
        todo = await service.update_todo(todo_id, payload)
    logger.info(f"Updated todo {todo_id}")
    return TodoMessageEnvelope(
        message="Todo updated successfully", data=TodoResponse.model_validate(todo)
    )


@router.patch(
    "/{todo_id}/toggle",
    response_model=TodoMessageEnvelope,
    summary="Toggle todo",
    description="Flip the completion state of a todo",
    status_code=status.HTTP_200_OK,
    responses=ID_RESPONSES,
)
async def toggle_todo(
    todo_id: str = Depends(valid_todo_id),
    service: TodoService = Depends(get_todo_service),
) -> TodoMessageEnvelope:
    with store_errors("Error toggling todo"):
        todo = await service.toggle_todo(todo_id)
    state = "completed" if todo.completed else "reopened"
    logger.info(f"Todo {todo_id} {state}")
    return TodoMessageEnvelope(
        message=f"Todo {state}", data=TodoResponse.model_validate(todo)
    )


@router.patch(
    "/{todo_id}/priority",
    response_model=TodoMessageEnvelope,
    summary="Update todo priority",
    status_code=status.HTTP_200_OK,
    responses=ID_RESPONSES,
)
async def update_priority(
    todo_id: str = Depends(valid_todo_id),
    payload: dict[str, Any] = Body(..., examples=[{"priority": "high"}]),
    service: TodoService = Depends(get_todo_service),
) -> TodoMessageEnvelope:
    with store_errors("Error updating todo priority"):
        todo = await service.update_priority(todo_id, payload)
    logger.info(f"Todo {todo_id} priority set to {todo.priority.value}")
    return TodoMessageEnvelope(
        message="Todo priority updated", data=TodoResponse.model_validate(todo)
    )


@router.delete(
    "/{todo_id}",
    response_model=TodoDeleteEnvelope,
    summary="Delete todo",
    status_code=status.HTTP_200_OK,
    responses=ID_RESPONSES,
)
async def delete_todo(
    todo_id: str = Depends(valid_todo_id),
    service: TodoService = Depends(get_todo_service),
) -> TodoDeleteEnvelope:
    """
    Delete a todo permanently

    Returns:
        Envelope echoing the deleted ID
    """
    with store_errors("Error deleting todo"):
        deleted_id = await service.delete_todo(todo_id)
    logger.info(f"Deleted todo {deleted_id}")
    return TodoDeleteEnvelope(
        message="Todo deleted successfully", data=DeletedTodo(id=deleted_id)
    )


@router.delete(
    "",
    response_model=TodoDeleteCompletedEnvelope,
    summary="Delete completed todos",
    status_code=status.HTTP_200_OK,
)
async def delete_completed(
    service: TodoService = Depends(get_todo_service),
) -> TodoDeleteCompletedEnvelope:
    with store_errors("Error deleting completed todos"):
        deleted = await service.delete_completed()
    logger.info(f"Deleted {deleted} completed todos")
    return TodoDeleteCompletedEnvelope(
        message=f"{deleted} completed todos deleted", deleted_count=deleted
    )
