"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from datetime import datetime

from pydantic import Field

from src.domain.base import CamelModel
from src.domain.task import TaskPriority, TaskStatus, TaskView
from src.domain.user import User


class StatusSummary(CamelModel):
    """Per-status task counts accompanying a task list."""

    all_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    completed_tasks: int


class TaskListResult(CamelModel):
    """Scoped task list with its status summary."""

    tasks: list[TaskView]
    status_summary: StatusSummary


class DashboardStatistics(CamelModel):
    """Headline task counts for a dashboard."""

    total_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    overdue_tasks: int


class DashboardCharts(CamelModel):
    """Distributions keyed by status (``Pending``, ``InProgress``, ``Completed``, ``All``) and priority."""

    task_distribution: dict[str, int]
    task_priority_level: dict[str, int]


class RecentTask(CamelModel):
    """Compact task row for the recent-tasks panel."""

    id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    created_at: str


class DashboardData(CamelModel):
    """Full dashboard payload."""

    statistics: DashboardStatistics
    charts: DashboardCharts
    recent_tasks: list[RecentTask]


class MemberSummary(User):
    """Member row for the admin team view."""

    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0


class SigninResult(CamelModel):
    """Signed-in user and the access token to hand back as a cookie."""

    user: User
    access_token: str = Field(..., exclude=True)
