"""Pydantic models for creating records."""

from datetime import datetime

from pydantic import Field

from src.domain.base import CamelModel
from src.domain.task import ChecklistItem, TaskPriority


class SignupRequest(CamelModel):
    """Signup payload. Emptiness is checked by the service so every missing field reports the same error."""

    name: str = ""
    email: str = ""
    password: str = ""
    profile_image_url: str | None = None
    admin_join_code: str | None = None


class SigninRequest(CamelModel):
    """Signin payload."""

    email: str = ""
    password: str = ""


class TaskCreate(CamelModel):
    """Payload for creating a task."""

    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field(default="", description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Priority level")
    due_date: datetime | None = Field(default=None, description="Due date")
    assigned_to: list[str] = Field(..., description="Assigned user IDs (at least one)")
    todo_checklist: list[ChecklistItem] = Field(default_factory=list, description="Initial checklist")
    attachments: list[str] = Field(default_factory=list, description="Attachment URLs")
