"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

# Import Base for models to inherit from
from app.core.database import Base
from app.models.todo import PRIORITY_RANK, Priority, Todo, TodoDraft, TodoRecord

# Export all models for easy imports
__all__ = [
    "Base",
    "PRIORITY_RANK",
    "Priority",
    "Todo",
    "TodoDraft",
    "TodoRecord",
]
