"""CSV exports of tasks and users for administrators."""

import csv
import io
import logging

from src.core import db_client
from src.core.config import constants
from src.core.logging import span
from src.domain.task import TaskStatus
from src.services import task_service, task_state_machine, user_service


logger = logging.getLogger(__name__)

TASK_REPORT_COLUMNS = [
    "Task ID",
    "Title",
    "Description",
    "Priority",
    "Status",
    "Progress",
    "Due Date",
    "Assigned To",
    "Checklist",
    "Created At",
]

USER_REPORT_COLUMNS = [
    "User ID",
    "Name",
    "Email",
    "Role",
    "Pending Tasks",
    "In Progress Tasks",
    "Completed Tasks",
]


def _write_csv(header: list[str], rows: list[list[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


async def export_tasks_csv() -> str:
    """Every task, newest first, with assignee names resolved."""
    with span("report_service.export_tasks_csv"):
        tasks = await task_service.load_scoped_tasks(user_id=None)
        all_ids = [str(uid) for task in tasks for uid in task.get("assigned_to", [])]
        users = await user_service.get_users_by_ids(user_ids=all_ids)

        rows: list[list[object]] = []
        for task in tasks:
            checklist = task.get("todo_checklist", [])
            assignees = ", ".join(users[str(uid)]["name"] for uid in task.get("assigned_to", []) if str(uid) in users)
            rows.append(
                [
                    task["id"],
                    task["title"],
                    task.get("description", ""),
                    task["priority"],
                    task["status"],
                    f"{task.get('progress', 0)}%",
                    task.get("due_date") or "",
                    assignees,
                    f"{task_state_machine.count_completed(checklist)}/{len(checklist)}",
                    task["created"],
                ]
            )

        logger.info("task_report_exported", extra={"rows": len(rows)})
        return _write_csv(TASK_REPORT_COLUMNS, rows)


async def export_users_csv() -> str:
    """Every user with their per-status assigned task counts."""
    with span("report_service.export_users_csv"):
        counts = await user_service.task_counts_by_user()

        rows: list[list[object]] = []
        async for user in db_client.iter_records(collection="users", sort="name", batch_size=constants.READ_BATCH_SIZE):
            per_status = counts.get(user["id"], {})
            rows.append(
                [
                    user["id"],
                    user["name"],
                    user["email"],
                    user["role"],
                    per_status.get(TaskStatus.PENDING.value, 0),
                    per_status.get(TaskStatus.IN_PROGRESS.value, 0),
                    per_status.get(TaskStatus.COMPLETED.value, 0),
                ]
            )

        logger.info("user_report_exported", extra={"rows": len(rows)})
        return _write_csv(USER_REPORT_COLUMNS, rows)
