"""Unit tests for checklist progress and status derivation."""

import pytest

from src.domain.task import TaskStatus
from src.services import task_state_machine


def _checklist(done: int, total: int) -> list[dict]:
    return [{"text": f"item {i}", "completed": i < done} for i in range(total)]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("done", "total", "expected"),
    [
        (0, 0, 0),
        (0, 4, 0),
        (1, 4, 25),
        (4, 4, 100),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
    ],
)
def test_calculate_progress_rounds_half_up(done: int, total: int, expected: int):
    assert task_state_machine.calculate_progress(_checklist(done, total)) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    ("progress", "expected"),
    [(0, TaskStatus.PENDING), (1, TaskStatus.IN_PROGRESS), (99, TaskStatus.IN_PROGRESS), (100, TaskStatus.COMPLETED)],
)
def test_status_for_progress(progress: int, expected: TaskStatus):
    assert task_state_machine.status_for_progress(progress) == expected


@pytest.mark.unit
def test_count_completed_ignores_missing_flag():
    checklist = [{"text": "a", "completed": True}, {"text": "b"}, {"text": "c", "completed": False}]

    assert task_state_machine.count_completed(checklist) == 1


@pytest.mark.unit
def test_apply_checklist_derives_progress_and_status():
    update = task_state_machine.apply_checklist(_checklist(1, 4))

    assert update["progress"] == 25
    assert update["status"] == "In Progress"
    assert len(update["todo_checklist"]) == 4


@pytest.mark.unit
def test_apply_checklist_empty_returns_to_pending():
    update = task_state_machine.apply_checklist([])

    assert update == {"todo_checklist": [], "progress": 0, "status": "Pending"}


@pytest.mark.unit
def test_status_override_to_completed_completes_every_item():
    update = task_state_machine.apply_status_override(TaskStatus.COMPLETED, _checklist(1, 3))

    assert update["status"] == "Completed"
    assert update["progress"] == 100
    assert all(item["completed"] for item in update["todo_checklist"])


@pytest.mark.unit
def test_status_override_to_pending_leaves_checklist_alone():
    update = task_state_machine.apply_status_override(TaskStatus.PENDING, _checklist(2, 3))

    assert update == {"status": "Pending"}
