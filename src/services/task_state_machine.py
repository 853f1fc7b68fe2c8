"""Pure progress and status derivation for the task lifecycle.

Status is a function of checklist progress:

    progress == 0        -> Pending
    0 < progress < 100   -> In Progress
    progress == 100      -> Completed
"""

from typing import Any

from src.domain.task import TaskStatus


FULL_PROGRESS = 100


def count_completed(checklist: list[dict[str, Any]]) -> int:
    """Number of checklist items marked completed."""
    return sum(1 for item in checklist if item.get("completed"))


def calculate_progress(checklist: list[dict[str, Any]]) -> int:
    """Completion percentage of a checklist, rounded half up; 0 for an empty checklist."""
    total = len(checklist)
    if total == 0:
        return 0
    completed = count_completed(checklist)
    # Integer form of floor(100 * completed / total + 0.5)
    return (200 * completed + total) // (2 * total)


def status_for_progress(progress: int) -> TaskStatus:
    """Derive task status from a progress percentage."""
    if progress >= FULL_PROGRESS:
        return TaskStatus.COMPLETED
    if progress > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def apply_checklist(checklist: list[dict[str, Any]]) -> dict[str, Any]:
    """Return the update that replaces a checklist and re-derives progress and status."""
    progress = calculate_progress(checklist)
    return {
        "todo_checklist": checklist,
        "progress": progress,
        "status": status_for_progress(progress).value,
    }


def apply_status_override(status: TaskStatus, checklist: list[dict[str, Any]]) -> dict[str, Any]:
    """Return the update for a direct status change.

    Completing a task forces every checklist item to completed and writes
    progress 100 so the stored pair stays consistent. Other statuses leave the
    checklist and progress untouched.
    """
    update: dict[str, Any] = {"status": status.value}
    if status == TaskStatus.COMPLETED:
        update["todo_checklist"] = [{**item, "completed": True} for item in checklist]
        update["progress"] = FULL_PROGRESS
    return update
