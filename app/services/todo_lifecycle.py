"""
Todo lifecycle rules
Pure functions that validate input and compute the next state of a todo.
Nothing here touches the database: the service layer calls these before
handing the result to the repository.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.api.schemas.todo import TODO_ERROR_PREFIX, TodoCreate, TodoPriorityUpdate, TodoUpdate
from app.core.exceptions import ValidationError
from app.models.todo import Priority, TodoDraft, TodoRecord

_ONE_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_timestamp(previous: datetime, now: datetime) -> datetime:
    """A lastModified value strictly after the previous one"""
    return now if now > previous else previous + _ONE_TICK


def _error_messages(exc: PydanticValidationError) -> list[str]:
    """
    Flatten pydantic errors into client-facing messages

    Our own validators already produce full sentences;
    anything else gets the offending field name in front
    """
    messages = []
    for error in exc.errors():
        if error["type"].startswith(TODO_ERROR_PREFIX):
            messages.append(error["msg"])
        else:
            field = ".".join(str(part) for part in error["loc"]) or "body"
            messages.append(f"{field}: {error['msg']}")
    return messages


def _parse(schema: type[BaseModel], data: Any) -> Any:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_error_messages(e)) from e


def parse_update(patch: Mapping[str, Any] | TodoUpdate) -> TodoUpdate:
    """Validate an update request without applying it"""
    return _parse(TodoUpdate, patch)


def parse_priority_change(data: Mapping[str, Any] | TodoPriorityUpdate) -> TodoPriorityUpdate:
    return _parse(TodoPriorityUpdate, data)


def validate_create(data: Mapping[str, Any] | TodoCreate, *, now: Optional[datetime] = None) -> TodoDraft:
    """
    Validate a create request and normalize it into a draft.

    Args:
        data: Raw request fields (camelCase or snake_case keys)
        now: Creation instant (defaults to the current UTC time)

    Returns:
        TodoDraft with trimmed text, defaulted priority,
        completed=False and created_at == last_modified

    Raises:
        ValidationError: listing every violated constraint
    """
    fields: TodoCreate = _parse(TodoCreate, data)
    now = now or utcnow()
    return TodoDraft(
        text=fields.text,
        priority=fields.priority or Priority.MEDIUM,
        category=fields.category,
        due_date=fields.due_date,
        created_at=now,
        last_modified=now,
    )


def _completed_at(existing: TodoRecord, completed: bool, now: datetime) -> Optional[datetime]:
    if not completed:
        return None
    if existing.completed and existing.completed_at is not None:
        return existing.completed_at
    return now


def apply_update(
    existing: TodoRecord,
    patch: Mapping[str, Any] | TodoUpdate,
    *,
    now: Optional[datetime] = None,
) -> TodoRecord:
    """
    Apply a partial update to a todo.

    Only fields present in the patch change. Null clears category and
    due date. completed_at follows completed, and last_modified always moves
    forward, even for an empty patch.

    Raises:
        ValidationError: listing every violated constraint
    """
    fields: TodoUpdate = _parse(TodoUpdate, patch)
    now = now or utcnow()

    changes: dict[str, Any] = {}
    for name in fields.model_fields_set:
        changes[name] = getattr(fields, name)

    if "completed" in changes:
        changes["completed_at"] = _completed_at(existing, changes["completed"], now)

    changes["last_modified"] = _next_timestamp(existing.last_modified, now)
    return replace(existing, **changes)


def change_priority(
    existing: TodoRecord,
    data: Mapping[str, Any] | TodoPriorityUpdate,
    *,
    now: Optional[datetime] = None,
) -> TodoRecord:
    """Set only the priority; same rules as apply_update"""
    fields: TodoPriorityUpdate = _parse(TodoPriorityUpdate, data)
    return apply_update(existing, {"priority": fields.priority}, now=now)


def toggle(existing: TodoRecord, *, now: Optional[datetime] = None) -> TodoRecord:
    """Flip completion state. Never fails."""
    now = now or utcnow()
    completed = not existing.completed
    return replace(
        existing,
        completed=completed,
        completed_at=_completed_at(existing, completed, now),
        last_modified=_next_timestamp(existing.last_modified, now),
    )
