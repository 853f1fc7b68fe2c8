"""Task service for CRUD operations, scoped listing and lifecycle transitions."""

import logging
from typing import Any

from src.core import db_client
from src.core.config import constants
from src.core.db_client import RecordNotFoundError, sanitize_param
from src.core.errors import InvalidRequestError, NotFoundError
from src.core.logging import log_with_user_context, span
from src.domain.create_models import TaskCreate
from src.domain.task import ChecklistItem, TaskStatus, TaskView
from src.domain.update_models import TaskUpdate
from src.domain.user import CurrentUser
from src.models.service_models import StatusSummary, TaskListResult
from src.services import access_policy, task_state_machine, user_service
from src.services.access_policy import TaskAction


logger = logging.getLogger(__name__)


def scope_filter(*, user_id: str | None, status: TaskStatus | None = None) -> str:
    """Filter restricting tasks to those assigned to ``user_id`` and, optionally, one status.

    ``user_id=None`` is the global scope.
    """
    clauses = []
    if user_id is not None:
        clauses.append(f'assigned_to ?= "{sanitize_param(user_id)}"')
    if status is not None:
        clauses.append(f'status = "{status.value}"')
    return " && ".join(clauses)


async def load_scoped_tasks(*, user_id: str | None, status: TaskStatus | None = None) -> list[dict[str, Any]]:
    """Every task in scope, newest first."""
    return [
        record
        async for record in db_client.iter_records(
            collection="tasks",
            filter_query=scope_filter(user_id=user_id, status=status),
            sort="-created",
            batch_size=constants.READ_BATCH_SIZE,
        )
    ]


async def _get_task_record(task_id: str) -> dict[str, Any]:
    try:
        return await db_client.get_record(collection="tasks", record_id=task_id)
    except RecordNotFoundError as err:
        raise NotFoundError("Task not found") from err


async def _validate_assignees(assigned_to: list[str]) -> list[str]:
    """Check that assignees form a non-empty list of existing user ids; returns them de-duplicated in order."""
    if not assigned_to:
        raise InvalidRequestError("assignedTo must be a non-empty array of user IDs")

    unique_ids = list(dict.fromkeys(str(uid) for uid in assigned_to))
    malformed = [uid for uid in unique_ids if not uid.isdigit()]
    if malformed:
        raise InvalidRequestError(f"Invalid assignee id(s): {', '.join(malformed)}")

    known = await user_service.get_users_by_ids(user_ids=unique_ids)
    missing = [uid for uid in unique_ids if uid not in known]
    if missing:
        raise InvalidRequestError(f"Unknown assignee(s): {', '.join(missing)}")
    return unique_ids


def _dump_checklist(checklist: list[ChecklistItem]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in checklist]


async def build_task_views(records: list[dict[str, Any]]) -> list[TaskView]:
    """Join assignee summaries and the completed item count onto task records."""
    all_ids = [str(uid) for record in records for uid in record.get("assigned_to", [])]
    users = await user_service.get_users_by_ids(user_ids=all_ids)

    views = []
    for record in records:
        assignees = [
            user_service.to_assignee_summary(users[str(uid)])
            for uid in record.get("assigned_to", [])
            if str(uid) in users
        ]
        views.append(
            TaskView.model_validate(
                {
                    **record,
                    "assigned_to": assignees,
                    "completed_count": task_state_machine.count_completed(record.get("todo_checklist", [])),
                }
            )
        )
    return views


async def _to_view(record: dict[str, Any]) -> TaskView:
    views = await build_task_views([record])
    return views[0]


async def create_task(*, payload: TaskCreate, actor: CurrentUser, strict_access: bool = False) -> TaskView:
    """Create a task owned by ``actor``.

    The task starts Pending with progress 0; a pre-completed checklist is stored
    as given and only re-derived on the next checklist update.

    Raises:
        ForbiddenError: If the policy denies creation
        InvalidRequestError: If assignees are empty or unknown
    """
    with span("task_service.create_task"):
        access_policy.enforce(action=TaskAction.CREATE, actor=actor, strict=strict_access)
        assigned_to = await _validate_assignees(payload.assigned_to)

        record = await db_client.create_record(
            collection="tasks",
            data={
                "title": payload.title,
                "description": payload.description,
                "priority": payload.priority.value,
                "due_date": payload.due_date,
                "assigned_to": assigned_to,
                "todo_checklist": _dump_checklist(payload.todo_checklist),
                "attachments": payload.attachments,
                "status": TaskStatus.PENDING.value,
                "progress": 0,
                "created_by": actor.id,
            },
        )

        log_with_user_context(logger, "info", "task_created", user_id=actor.id, task_id=record["id"])
        return await _to_view(record)


async def list_tasks(*, actor: CurrentUser, status: TaskStatus | None = None) -> TaskListResult:
    """List tasks visible to ``actor`` with a status summary.

    Admins see every task, other users only tasks assigned to them. ``all_tasks``
    counts the whole scope ignoring ``status``; the per-status counts apply
    ``status`` on top of their own status.
    """
    with span("task_service.list_tasks"):
        user_id = None if actor.is_admin else actor.id
        all_tasks = await db_client.count_records(collection="tasks", filter_query=scope_filter(user_id=user_id))
        per_status = await db_client.count_by_field(
            collection="tasks",
            field="status",
            filter_query=scope_filter(user_id=user_id, status=status),
        )
        tasks = await load_scoped_tasks(user_id=user_id, status=status)

        summary = StatusSummary(
            all_tasks=all_tasks,
            pending_tasks=per_status.get(TaskStatus.PENDING.value, 0),
            in_progress_tasks=per_status.get(TaskStatus.IN_PROGRESS.value, 0),
            completed_tasks=per_status.get(TaskStatus.COMPLETED.value, 0),
        )
        return TaskListResult(tasks=await build_task_views(tasks), status_summary=summary)


async def get_task(*, task_id: str, actor: CurrentUser, strict_access: bool = False) -> TaskView:
    """Fetch one task with assignee summaries.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the policy denies viewing
    """
    record = await _get_task_record(task_id)
    access_policy.enforce(action=TaskAction.VIEW, actor=actor, task=record, strict=strict_access)
    return await _to_view(record)


async def update_task(
    *,
    task_id: str,
    update: TaskUpdate,
    actor: CurrentUser,
    strict_access: bool = False,
) -> TaskView:
    """Apply every field present in ``update``. Progress and status are not re-derived here.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the policy denies the update
        InvalidRequestError: If a supplied assignee list is empty or names unknown users
    """
    with span("task_service.update_task"):
        record = await _get_task_record(task_id)
        access_policy.enforce(action=TaskAction.UPDATE, actor=actor, task=record, strict=strict_access)

        data: dict[str, Any] = {}
        if update.title is not None:
            data["title"] = update.title
        if update.description is not None:
            data["description"] = update.description
        if update.priority is not None:
            data["priority"] = update.priority.value
        if update.due_date is not None:
            data["due_date"] = update.due_date
        if update.todo_checklist is not None:
            data["todo_checklist"] = _dump_checklist(update.todo_checklist)
        if update.attachments is not None:
            data["attachments"] = update.attachments
        if update.assigned_to is not None:
            data["assigned_to"] = await _validate_assignees(update.assigned_to)

        if not data:
            return await _to_view(record)

        updated = await db_client.update_record(collection="tasks", record_id=task_id, data=data)
        log_with_user_context(logger, "info", "task_updated", user_id=actor.id, task_id=task_id, fields=sorted(data))
        return await _to_view(updated)


async def delete_task(*, task_id: str, actor: CurrentUser, strict_access: bool = False) -> None:
    """Permanently delete a task.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the policy denies deletion
    """
    with span("task_service.delete_task"):
        record = await _get_task_record(task_id)
        access_policy.enforce(action=TaskAction.DELETE, actor=actor, task=record, strict=strict_access)

        try:
            await db_client.delete_record(collection="tasks", record_id=task_id)
        except RecordNotFoundError as err:
            raise NotFoundError("Task not found") from err

        log_with_user_context(logger, "info", "task_deleted", user_id=actor.id, task_id=task_id)


async def update_task_status(*, task_id: str, status: TaskStatus, actor: CurrentUser) -> TaskView:
    """Override a task's status (admins and assignees only).

    Completing forces every checklist item to completed and sets progress to 100.

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the actor is neither admin nor assignee
    """
    with span("task_service.update_task_status"):
        record = await _get_task_record(task_id)
        access_policy.enforce(action=TaskAction.UPDATE_STATUS, actor=actor, task=record)

        data = task_state_machine.apply_status_override(status, record.get("todo_checklist", []))
        updated = await db_client.update_record(collection="tasks", record_id=task_id, data=data)

        log_with_user_context(
            logger, "info", "task_status_updated", user_id=actor.id, task_id=task_id, status=status.value
        )
        return await _to_view(updated)


async def update_task_checklist(
    *,
    task_id: str,
    checklist: list[ChecklistItem],
    actor: CurrentUser,
) -> TaskView:
    """Replace a task's checklist and re-derive progress and status (admins and assignees only).

    Raises:
        NotFoundError: If the task does not exist
        ForbiddenError: If the actor is neither admin nor assignee
    """
    with span("task_service.update_task_checklist"):
        record = await _get_task_record(task_id)
        access_policy.enforce(action=TaskAction.UPDATE_CHECKLIST, actor=actor, task=record)

        data = task_state_machine.apply_checklist(_dump_checklist(checklist))
        updated = await db_client.update_record(collection="tasks", record_id=task_id, data=data)

        log_with_user_context(
            logger,
            "info",
            "task_checklist_updated",
            user_id=actor.id,
            task_id=task_id,
            progress=data["progress"],
            status=data["status"],
        )
        return await _to_view(updated)
