"""
Todo Pydantic schemas
Request and response models for Todo API endpoints
Reference: https://fastapi.tiangolo.com/tutorial/body/
"""
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from app.models.todo import Priority

TEXT_MAX_LENGTH = 500
CATEGORY_MAX_LENGTH = 50

# Error types raised by the validators below; their messages are shown to clients as-is
TODO_ERROR_PREFIX = "todo_"

_DUE_DATE_ADAPTER = TypeAdapter(Union[datetime, date])


class CamelModel(BaseModel):
    """
    Base schema: camelCase on the wire, snake_case in Python
    Reference: https://docs.pydantic.dev/latest/concepts/alias/#using-an-aliasgenerator
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_text(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("todo_text_required", "Todo text is required")
    if not isinstance(value, str):
        raise PydanticCustomError("todo_text_type", "Todo text must be a string")
    value = value.strip()
    if len(value) > TEXT_MAX_LENGTH:
        raise PydanticCustomError(
            "todo_text_too_long",
            "Todo text cannot exceed {max_length} characters",
            {"max_length": TEXT_MAX_LENGTH},
        )
    return value


def _check_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    if isinstance(value, str) and value in Priority._value2member_map_:
        return Priority(value)
    raise PydanticCustomError(
        "todo_priority_invalid", "Priority must be low, medium, or high"
    )


def _check_category(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise PydanticCustomError("todo_category_type", "Category must be a string")
    value = value.strip()
    if len(value) > CATEGORY_MAX_LENGTH:
        raise PydanticCustomError(
            "todo_category_too_long",
            "Category cannot exceed {max_length} characters",
            {"max_length": CATEGORY_MAX_LENGTH},
        )
    # An empty category means "no category"
    return value or None


def _check_due_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    try:
        parsed = _DUE_DATE_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise PydanticCustomError(
            "todo_due_date_invalid", "Due date must be a valid date"
        ) from None
    if not isinstance(parsed, datetime):
        parsed = datetime.combine(parsed, time.min)
    if parsed.tzinfo is None:
        # Naive due dates are taken as UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    # Stored and returned in UTC whatever offset was sent
    return parsed.astimezone(timezone.utc)


def _check_completed(value: Any) -> bool:
    if not isinstance(value, bool):
        raise PydanticCustomError("todo_completed_type", "Completed must be a boolean")
    return value


class TodoCreate(CamelModel):
    """
    Schema for creating a new todo

    Fields that are absent take their defaults:
    priority is medium, category and dueDate are empty
    """
    text: Optional[str] = Field(
        None,
        validate_default=True,
        description="Todo text (1-500 characters after trimming)",
    )
    priority: Optional[Priority] = Field(None, description="low, medium or high (default: medium)")
    category: Optional[str] = Field(None, description="Optional category (at most 50 characters)")
    due_date: Optional[datetime] = Field(None, description="Optional due date (ISO 8601)")

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> str:
        """Trim and bound the todo text"""
        return _check_text(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> Priority:
        """Missing or null priority defaults to medium"""
        if v is None or v == "":
            return Priority.MEDIUM
        return _check_priority(v)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Optional[str]:
        return _check_category(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Optional[datetime]:
        return _check_due_date(v)


class TodoUpdate(CamelModel):
    """
    Schema for updating a todo
    All fields are optional for partial updates; only fields present in the
    request are applied (see model_fields_set)
    Null clears category and dueDate; null text, completed or priority is rejected
    Reference: https://fastapi.tiangolo.com/tutorial/body-updates/
    """
    text: Optional[str] = Field(None, description="Todo text")
    completed: Optional[bool] = Field(None, description="Whether the todo is completed")
    priority: Optional[Priority] = Field(None, description="low, medium or high")
    category: Optional[str] = Field(None, description="Category, null to clear")
    due_date: Optional[datetime] = Field(None, description="Due date, null to clear")

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> str:
        return _check_text(v)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> bool:
        return _check_completed(v)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> Priority:
        return _check_priority(v)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Optional[str]:
        return _check_category(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Optional[datetime]:
        return _check_due_date(v)


class TodoPriorityUpdate(CamelModel):
    """Schema for changing only the priority of a todo"""
    priority: Optional[Priority] = Field(
        None, validate_default=True, description="low, medium or high"
    )

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> Priority:
        return _check_priority(v)


class TodoResponse(CamelModel):
    """
    Schema for todo response
    Built from a TodoRecord; serialized with camelCase keys
    """
    id: str = Field(..., description="Todo ID (24 hex characters)")
    text: str
    completed: bool
    priority: Priority
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    last_modified: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def age(self) -> int:
        """Whole days since the todo was created"""
        return max((datetime.now(timezone.utc) - self.created_at).days, 0)


class TodoEnvelope(CamelModel):
    """Envelope for a single todo"""
    success: bool = True
    data: TodoResponse


class TodoMessageEnvelope(TodoEnvelope):
    """Envelope for a single todo after a mutation"""
    message: str


class TodoListEnvelope(CamelModel):
    """Envelope for one page of todos"""
    success: bool = True
    count: int = Field(..., ge=0, description="Number of todos in this page")
    total: int = Field(..., ge=0, description="Number of todos matching the filter")
    page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    data: list[TodoResponse]


class DeletedTodo(BaseModel):
    id: str


class TodoDeleteEnvelope(CamelModel):
    """Envelope for a deleted todo, echoing its ID"""
    success: bool = True
    message: str
    data: DeletedTodo


class TodoDeleteCompletedEnvelope(CamelModel):
    """Envelope for the bulk deletion of completed todos"""
    success: bool = True
    message: str
    deleted_count: int = Field(..., ge=0)


class TodoStats(CamelModel):
    """
    Todo statistics

    completion_rate is a whole percentage;
    priority_breakdown only lists priorities that occur
    """
    total: int
    active: int
    completed: int
    completion_rate: int
    priority_breakdown: dict[str, int]


class TodoStatsEnvelope(CamelModel):
    success: bool = True
    data: TodoStats


class ErrorEnvelope(BaseModel):
    """Body of every failed response"""
    success: bool = False
    message: str
    errors: Optional[list[str]] = None
    error: Optional[str] = None
