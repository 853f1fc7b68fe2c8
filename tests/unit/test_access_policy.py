"""Unit tests for the task access policy."""

import pytest

from src.core.errors import ForbiddenError
from src.domain.user import UserRole
from src.services import access_policy
from src.services.access_policy import TaskAction
from tests.conftest import make_actor


TASK = {"id": "7", "assigned_to": ["2", "3"]}

ADMIN = make_actor("1", UserRole.ADMIN)
ASSIGNEE = make_actor("2")
OUTSIDER = make_actor("9")


@pytest.mark.unit
@pytest.mark.parametrize("action", list(TaskAction))
@pytest.mark.parametrize("strict", [False, True])
def test_admin_is_always_allowed(action: TaskAction, strict: bool):
    decision = access_policy.evaluate(action=action, actor=ADMIN, task=TASK, strict=strict)

    assert decision.allowed


@pytest.mark.unit
@pytest.mark.parametrize("action", [TaskAction.UPDATE_STATUS, TaskAction.UPDATE_CHECKLIST])
def test_lifecycle_actions_require_assignee(action: TaskAction):
    assert access_policy.evaluate(action=action, actor=ASSIGNEE, task=TASK).allowed

    denied = access_policy.evaluate(action=action, actor=OUTSIDER, task=TASK)
    assert not denied.allowed
    assert denied.reason == "Only admins and assignees can modify this task"


@pytest.mark.unit
@pytest.mark.parametrize(
    "action",
    [TaskAction.CREATE, TaskAction.VIEW, TaskAction.UPDATE, TaskAction.DELETE, TaskAction.VIEW_GLOBAL_DASHBOARD],
)
def test_open_actions_allowed_for_anyone_by_default(action: TaskAction):
    assert access_policy.evaluate(action=action, actor=OUTSIDER, task=TASK).allowed


@pytest.mark.unit
@pytest.mark.parametrize(
    "action", [TaskAction.CREATE, TaskAction.UPDATE, TaskAction.DELETE, TaskAction.VIEW_GLOBAL_DASHBOARD]
)
def test_strict_mode_restricts_to_admins(action: TaskAction):
    decision = access_policy.evaluate(action=action, actor=ASSIGNEE, task=TASK, strict=True)

    assert not decision.allowed
    assert decision.reason == "Admin access required"


@pytest.mark.unit
def test_strict_view_allows_assignee_only():
    assert access_policy.evaluate(action=TaskAction.VIEW, actor=ASSIGNEE, task=TASK, strict=True).allowed
    assert not access_policy.evaluate(action=TaskAction.VIEW, actor=OUTSIDER, task=TASK, strict=True).allowed


@pytest.mark.unit
def test_is_assignee_compares_ids_as_strings():
    assert access_policy.is_assignee(make_actor("5"), {"assigned_to": [5]})
    assert not access_policy.is_assignee(make_actor("5"), None)


@pytest.mark.unit
def test_enforce_raises_forbidden_with_reason():
    with pytest.raises(ForbiddenError, match="Only admins and assignees"):
        access_policy.enforce(action=TaskAction.UPDATE_CHECKLIST, actor=OUTSIDER, task=TASK)


@pytest.mark.unit
def test_enforce_logs_unrestricted_access(caplog):
    with caplog.at_level("WARNING"):
        access_policy.enforce(action=TaskAction.DELETE, actor=OUTSIDER, task=TASK)

    assert any(record.getMessage() == "access_unrestricted" for record in caplog.records)
