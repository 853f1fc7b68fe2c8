"""Dashboard statistics for the admin (global) and per-user views.

Both scopes produce the same shape:
- statistics: total, pending, in-progress, completed and overdue counts
- charts.task_distribution: one bucket per status (zero filled) plus ``All``
- charts.task_priority_level: one bucket per priority (zero filled)
- recent_tasks: the most recently created tasks

Counts come from grouped queries, so they cover every task in scope.

A task is overdue when it is not Completed and its due date has passed. Tasks
without a due date are never overdue.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from src.core import db_client
from src.core.config import constants
from src.core.logging import span
from src.domain.task import TaskPriority, TaskStatus
from src.domain.user import CurrentUser
from src.models.service_models import DashboardCharts, DashboardData, DashboardStatistics, RecentTask
from src.services import access_policy, task_service
from src.services.access_policy import TaskAction


logger = logging.getLogger(__name__)


def _parse_due_date(value: Any) -> datetime | None:
    """Due dates come back as ISO strings from SQLite; naive values are treated as UTC."""
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_overdue(task: dict[str, Any], *, now: datetime) -> bool:
    """Whether a task is past due and not completed."""
    if task.get("status") == TaskStatus.COMPLETED.value:
        return False
    due_date = _parse_due_date(task.get("due_date"))
    return due_date is not None and due_date < now


def distribution_key(status: TaskStatus) -> str:
    """Chart key for a status: ``In Progress`` becomes ``InProgress``."""
    return status.value.replace(" ", "")


def _recent_task(task: dict[str, Any]) -> RecentTask:
    return RecentTask(
        id=task["id"],
        title=task["title"],
        status=task["status"],
        priority=task["priority"],
        due_date=_parse_due_date(task.get("due_date")),
        created_at=task["created"],
    )


def summarize(
    *,
    total_tasks: int,
    status_counts: Mapping[str, int],
    priority_counts: Mapping[str, int],
    overdue_tasks: int,
    recent: list[dict[str, Any]],
) -> DashboardData:
    """Assemble dashboard data from per-status and per-priority counts and the newest tasks."""
    statistics = DashboardStatistics(
        total_tasks=total_tasks,
        pending_tasks=status_counts.get(TaskStatus.PENDING.value, 0),
        in_progress_tasks=status_counts.get(TaskStatus.IN_PROGRESS.value, 0),
        completed_tasks=status_counts.get(TaskStatus.COMPLETED.value, 0),
        overdue_tasks=overdue_tasks,
    )

    task_distribution = {distribution_key(status): status_counts.get(status.value, 0) for status in TaskStatus}
    task_distribution["All"] = total_tasks
    task_priority_level = {priority.value: priority_counts.get(priority.value, 0) for priority in TaskPriority}

    return DashboardData(
        statistics=statistics,
        charts=DashboardCharts(task_distribution=task_distribution, task_priority_level=task_priority_level),
        recent_tasks=[_recent_task(task) for task in recent[: constants.RECENT_TASKS_LIMIT]],
    )


async def _count_overdue(scope: str, *, now: datetime) -> int:
    """Walk the open tasks with a due date in scope and count those already past it."""
    candidates = " && ".join(clause for clause in (scope, 'status != "Completed"', 'due_date != ""') if clause)
    overdue = 0
    async for task in db_client.iter_records(
        collection="tasks", filter_query=candidates, batch_size=constants.READ_BATCH_SIZE
    ):
        if is_overdue(task, now=now):
            overdue += 1
    return overdue


async def build_dashboard(*, user_id: str | None, now: datetime | None = None) -> DashboardData:
    """Dashboard over every task (``user_id=None``) or over the tasks assigned to ``user_id``."""
    scope = task_service.scope_filter(user_id=user_id)
    return summarize(
        total_tasks=await db_client.count_records(collection="tasks", filter_query=scope),
        status_counts=await db_client.count_by_field(collection="tasks", field="status", filter_query=scope),
        priority_counts=await db_client.count_by_field(collection="tasks", field="priority", filter_query=scope),
        overdue_tasks=await _count_overdue(scope, now=now or datetime.now(UTC)),
        recent=await db_client.list_records(
            collection="tasks", filter_query=scope, sort="-created", per_page=constants.RECENT_TASKS_LIMIT
        ),
    )


async def get_global_dashboard(*, actor: CurrentUser, strict_access: bool = False) -> DashboardData:
    """Dashboard over every task.

    Raises:
        ForbiddenError: If the policy restricts the global dashboard to admins
    """
    with span("analytics_service.get_global_dashboard"):
        access_policy.enforce(action=TaskAction.VIEW_GLOBAL_DASHBOARD, actor=actor, strict=strict_access)
        return await build_dashboard(user_id=None)


async def get_user_dashboard(*, user_id: str) -> DashboardData:
    """Dashboard over the tasks assigned to ``user_id``."""
    with span("analytics_service.get_user_dashboard"):
        data = await build_dashboard(user_id=user_id)
        logger.debug("user_dashboard_loaded", extra={"user_id": user_id, "task_count": data.statistics.total_tasks})
        return data
