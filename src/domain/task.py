"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from src.domain.base import CamelModel


class TaskStatus(StrEnum):
    """Task lifecycle stage, derived from checklist progress."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskPriority(StrEnum):
    """Task priority level."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ChecklistItem(CamelModel):
    """A titled boolean sub-task owned by a task."""

    text: str = Field(..., min_length=1, description="Checklist item text")
    completed: bool = Field(default=False, description="Whether the item is done")


class AssigneeSummary(CamelModel):
    """Assignee fields joined onto task responses."""

    id: str
    name: str
    email: str
    profile_image_url: str | None = None


class Task(CamelModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level")
    due_date: datetime | None = Field(default=None, description="Due date")
    assigned_to: list[str] = Field(default_factory=list, description="Assigned user IDs")
    todo_checklist: list[ChecklistItem] = Field(default_factory=list, description="Ordered checklist")
    attachments: list[str] = Field(default_factory=list, description="Attachment URLs")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle stage")
    progress: int = Field(default=0, ge=0, le=100, description="Checklist completion percentage")
    created_by: str | None = Field(default=None, description="Creator user ID")


class TaskView(Task):
    """Task as returned to clients: assignees joined, completed item count computed on read."""

    assigned_to: list[AssigneeSummary] = Field(default_factory=list, description="Assigned users")  # type: ignore[assignment]
    completed_count: int = Field(default=0, description="Number of completed checklist items")
