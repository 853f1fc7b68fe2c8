"""Domain models and DTOs."""

from src.domain.create_models import SigninRequest, SignupRequest, TaskCreate
from src.domain.task import AssigneeSummary, ChecklistItem, Task, TaskPriority, TaskStatus, TaskView
from src.domain.update_models import ProfileUpdate, TaskChecklistUpdate, TaskStatusUpdate, TaskUpdate
from src.domain.user import CurrentUser, User, UserRole


__all__ = [
    "AssigneeSummary",
    "ChecklistItem",
    "CurrentUser",
    "ProfileUpdate",
    "SigninRequest",
    "SignupRequest",
    "Task",
    "TaskChecklistUpdate",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskStatusUpdate",
    "TaskUpdate",
    "TaskView",
    "User",
    "UserRole",
]
