"""
Todo list query planning
Turns the list endpoint's filter/sort/pagination parameters into a
store-independent plan, and finishes a fetched page.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from app.models.todo import Priority, TodoRecord

DEFAULT_LIMIT = 100
MAX_LIMIT = 100
# Largest OFFSET a store accepts (signed 64-bit); pages beyond it are empty
MAX_SKIP = 2**63 - 1


class CompletionFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortBy(str, Enum):
    RECENT = "recent"
    OLDEST = "oldest"
    PRIORITY = "priority"
    LAST_MODIFIED = "lastModified"


class SortField(str, Enum):
    """Columns the store can order by"""
    CREATED_AT = "created_at"
    LAST_MODIFIED = "last_modified"
    PRIORITY_RANK = "priority_rank"


@dataclass(frozen=True, slots=True)
class SortKey:
    field: SortField
    descending: bool = True


@dataclass(frozen=True, slots=True)
class TodoPredicate:
    """
    Equality constraints on a todo; None means unconstrained
    """
    completed: Optional[bool] = None
    priority: Optional[Priority] = None

    def matches(self, todo: TodoRecord) -> bool:
        if self.completed is not None and todo.completed != self.completed:
            return False
        if self.priority is not None and todo.priority != self.priority:
            return False
        return True


@dataclass(frozen=True, slots=True)
class ListPlan:
    """
    What to ask the store for

    Attributes:
        predicate: Filter applied to both the page and the count
        order: Store-level sort keys, most significant first
        skip: Rows to skip
        limit: Maximum rows to return
        page: 1-based page number the plan was built for
        resort_by_priority: Re-sort the fetched page by priority rank
    """
    predicate: TodoPredicate
    order: tuple[SortKey, ...]
    skip: int
    limit: int
    page: int
    resort_by_priority: bool = False

    @property
    def past_last_row(self) -> bool:
        """True when skip is beyond any offset the store can address"""
        return self.skip > MAX_SKIP


@dataclass(frozen=True, slots=True)
class TodoPage:
    items: list[TodoRecord]
    total: int
    page: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


_ORDERS: dict[SortBy, tuple[SortKey, ...]] = {
    SortBy.RECENT: (SortKey(SortField.CREATED_AT, descending=True),),
    SortBy.OLDEST: (SortKey(SortField.CREATED_AT, descending=False),),
    SortBy.LAST_MODIFIED: (SortKey(SortField.LAST_MODIFIED, descending=True),),
    SortBy.PRIORITY: (
        SortKey(SortField.PRIORITY_RANK, descending=True),
        SortKey(SortField.CREATED_AT, descending=True),
    ),
}


def _coerce(enum_cls, value: Optional[str], default=None):
    """Enum member for value, or default when value is missing or unknown"""
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def build_predicate(filter: Optional[str] = None, priority: Optional[str] = None) -> TodoPredicate:
    """
    Unknown filter values mean "all"; unknown priorities are ignored
    """
    completion = _coerce(CompletionFilter, filter, CompletionFilter.ALL)
    completed = {
        CompletionFilter.ACTIVE: False,
        CompletionFilter.COMPLETED: True,
    }.get(completion)
    return TodoPredicate(completed=completed, priority=_coerce(Priority, priority))


def build_list_plan(
    filter: Optional[str] = None,
    priority: Optional[str] = None,
    sort_by: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> ListPlan:
    """
    Plan a list query.

    Args:
        filter: all, active or completed (default all)
        priority: low, medium or high; anything else is ignored
        sort_by: recent, oldest, priority or lastModified (default recent)
        page: 1-based page number
        limit: page size, clamped to 1..100 (default 100)

    Returns:
        ListPlan for the repository
    """
    sort = _coerce(SortBy, sort_by, SortBy.RECENT)
    page = max(page, 1)
    limit = clamp_limit(limit)
    return ListPlan(
        predicate=build_predicate(filter, priority),
        order=_ORDERS[sort],
        skip=(page - 1) * limit,
        limit=limit,
        page=page,
        resort_by_priority=sort is SortBy.PRIORITY,
    )


def priority_sort_key(todo: TodoRecord) -> tuple[int, float]:
    """Sort key for rank desc, created_at desc (use with reverse=True)"""
    return todo.priority_rank, todo.created_at.timestamp()


def sort_by_priority(todos: Sequence[TodoRecord]) -> list[TodoRecord]:
    """Order todos by priority rank (high first), newest first within a rank"""
    return sorted(todos, key=priority_sort_key, reverse=True)


def finish_page(plan: ListPlan, items: Sequence[TodoRecord], total: int) -> TodoPage:
    """
    Apply the in-memory pass to a fetched page and attach pagination info

    The priority re-sort only reorders the rows already fetched; the store
    orders by the same rank, so page boundaries stay consistent
    """
    items = sort_by_priority(items) if plan.resort_by_priority else list(items)
    return TodoPage(items=items, total=total, page=plan.page, limit=plan.limit)
