"""Update models for database operations.

A field is applied only when it is present (not None), so an explicitly supplied
falsy value such as an empty description is still written.
"""

from datetime import datetime

from pydantic import Field

from src.domain.base import CamelModel
from src.domain.task import ChecklistItem, TaskPriority, TaskStatus


class TaskUpdate(CamelModel):
    """Partial task update."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    todo_checklist: list[ChecklistItem] | None = None
    attachments: list[str] | None = None
    assigned_to: list[str] | None = None


class TaskStatusUpdate(CamelModel):
    """Direct status override."""

    status: TaskStatus


class TaskChecklistUpdate(CamelModel):
    """Wholesale checklist replacement."""

    todo_checklist: list[ChecklistItem]


class ProfileUpdate(CamelModel):
    """Self-service profile update. Role is deliberately absent."""

    name: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, min_length=1)
    password: str | None = Field(default=None, min_length=1)
