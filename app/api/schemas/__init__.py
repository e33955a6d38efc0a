"""
Pydantic schemas for API request/response models
"""

from app.api.schemas.todo import TodoCreate, TodoPriorityUpdate, TodoResponse, TodoUpdate

__all__ = ["TodoCreate", "TodoPriorityUpdate", "TodoResponse", "TodoUpdate"]
