"""
Todo database model and typed records
SQLAlchemy model for the todos table plus the plain records the service layer works with
Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, case
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from app.core.database import Base


class Priority(str, Enum):
    """Todo priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Explicit ordering over the enum, used both in SQL and in memory
PRIORITY_RANK: dict[str, int] = {
    Priority.HIGH.value: 3,
    Priority.MEDIUM.value: 2,
    Priority.LOW.value: 1,
}


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column

    SQLite hands back naive datetimes; they are stored as UTC,
    so UTC is re-attached on load
    Reference: https://docs.sqlalchemy.org/en/20/core/custom_types.html#augmenting-existing-types
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
            if dialect.name == "sqlite":
                value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


@dataclass(frozen=True, slots=True)
class TodoDraft:
    """
    A validated todo that has not been stored yet (no id)
    """
    text: str
    priority: Priority
    category: Optional[str]
    due_date: Optional[datetime]
    created_at: datetime
    last_modified: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class TodoRecord:
    """
    A stored todo

    Attributes:
        id: 24-character hex identifier assigned by the store
        text: Todo text, trimmed, 1-500 characters
        completed: Whether the todo is done
        priority: low, medium or high
        category: Optional label, at most 50 characters
        due_date: Optional due date
        created_at: Creation time, never changes
        completed_at: Set while completed, None otherwise
        last_modified: Refreshed by every mutation
    """
    id: str
    text: str
    completed: bool
    priority: Priority
    category: Optional[str]
    due_date: Optional[datetime]
    created_at: datetime
    completed_at: Optional[datetime]
    last_modified: datetime

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK[self.priority.value]


class Todo(Base):
    """
    Todo model representing a todo in the database

    Priority is stored as String(10), not as a database enum;
    enum validation happens before anything is written
    Reference: https://docs.sqlalchemy.org/en/20/orm/mapped_sql_expressions.html
    """
    __tablename__ = "todos"

    # Indexes for the list filters and sort orders
    # Reference: https://docs.sqlalchemy.org/en/20/core/constraints.html#indexes
    __table_args__ = (
        Index("ix_todos_completed", "completed"),
        Index("ix_todos_priority", "priority"),
        Index("ix_todos_created_at", "created_at"),
        Index("ix_todos_last_modified", "last_modified"),
    )

    # Primary key: 24 hex characters, generated by the repository
    id: Mapped[str] = mapped_column(String(24), primary_key=True)

    text: Mapped[str] = mapped_column(String(500), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), default=Priority.MEDIUM.value, nullable=False
    )
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # Timestamps are set by the service layer, not by server defaults,
    # so the values returned to the client are exactly the stored ones
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    last_modified: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    @hybrid_property
    def priority_rank(self) -> int:
        """Integer rank of the priority (high=3, medium=2, low=1)"""
        return PRIORITY_RANK.get(self.priority, 0)

    @priority_rank.inplace.expression
    @classmethod
    def _priority_rank_expression(cls):
        return case(PRIORITY_RANK, value=cls.priority, else_=0)

    def to_record(self) -> TodoRecord:
        """Convert the ORM row into a detached TodoRecord"""
        return TodoRecord(
            id=self.id,
            text=self.text,
            completed=self.completed,
            priority=Priority(self.priority),
            category=self.category,
            due_date=self.due_date,
            created_at=self.created_at,
            completed_at=self.completed_at,
            last_modified=self.last_modified,
        )

    def __repr__(self) -> str:
        """String representation of Todo"""
        return f"<Todo(id={self.id}, text='{self.text}', completed={self.completed})>"
