"""Single capability check applied before every task operation."""

import logging
from enum import StrEnum
from typing import Any, NamedTuple

from src.core.errors import ForbiddenError
from src.domain.user import CurrentUser


logger = logging.getLogger(__name__)


class TaskAction(StrEnum):
    """Operations guarded by the access policy."""

    CREATE = "create"
    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"
    UPDATE_STATUS = "update_status"
    UPDATE_CHECKLIST = "update_checklist"
    VIEW_GLOBAL_DASHBOARD = "view_global_dashboard"


class PolicyDecision(NamedTuple):
    """Outcome of a capability check."""

    allowed: bool
    reason: str


# Actions that only admins and assignees may perform, regardless of configuration
_ASSIGNEE_ACTIONS = {TaskAction.UPDATE_STATUS, TaskAction.UPDATE_CHECKLIST}

# Actions open to any authenticated caller unless strict access control is enabled
_ADMIN_ACTIONS_WHEN_STRICT = {
    TaskAction.CREATE,
    TaskAction.UPDATE,
    TaskAction.DELETE,
    TaskAction.VIEW_GLOBAL_DASHBOARD,
}


def is_assignee(actor: CurrentUser, task: dict[str, Any] | None) -> bool:
    """Whether the actor is listed in the task's assignees."""
    if task is None:
        return False
    return actor.id in {str(user_id) for user_id in task.get("assigned_to", [])}


def evaluate(
    *,
    action: TaskAction,
    actor: CurrentUser,
    task: dict[str, Any] | None = None,
    strict: bool = False,
) -> PolicyDecision:
    """Decide whether ``actor`` may perform ``action`` on ``task``.

    Args:
        action: The operation being attempted
        actor: Identity resolved by the authentication gate
        task: Task record the action targets (None for create and dashboards)
        strict: Close the open-access gaps on create/update/delete/view and the global dashboard

    Returns:
        PolicyDecision with the verdict and a short reason
    """
    if actor.is_admin:
        return PolicyDecision(allowed=True, reason="admin")

    if action in _ASSIGNEE_ACTIONS:
        if is_assignee(actor, task):
            return PolicyDecision(allowed=True, reason="assignee")
        return PolicyDecision(allowed=False, reason="Only admins and assignees can modify this task")

    if action == TaskAction.VIEW:
        if not strict or is_assignee(actor, task):
            return PolicyDecision(allowed=True, reason="assignee" if strict else "unrestricted")
        return PolicyDecision(allowed=False, reason="Only admins and assignees can view this task")

    if action in _ADMIN_ACTIONS_WHEN_STRICT:
        if strict:
            return PolicyDecision(allowed=False, reason="Admin access required")
        return PolicyDecision(allowed=True, reason="unrestricted")

    return PolicyDecision(allowed=False, reason=f"Unknown action: {action}")


def enforce(
    *,
    action: TaskAction,
    actor: CurrentUser,
    task: dict[str, Any] | None = None,
    strict: bool = False,
) -> None:
    """Evaluate the policy and raise ForbiddenError on deny."""
    decision = evaluate(action=action, actor=actor, task=task, strict=strict)
    task_id = task.get("id") if task else None

    if not decision.allowed:
        logger.warning(
            "access_denied",
            extra={"action": action.value, "user_id": actor.id, "task_id": task_id, "reason": decision.reason},
        )
        raise ForbiddenError(decision.reason)

    if decision.reason == "unrestricted" and action != TaskAction.VIEW:
        logger.warning(
            "access_unrestricted",
            extra={"action": action.value, "user_id": actor.id, "task_id": task_id},
        )
