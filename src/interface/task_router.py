"""Task endpoints."""

from fastapi import APIRouter, Depends, status as http_status

from src.core.config import Settings
from src.domain.base import CamelModel
from src.domain.create_models import TaskCreate
from src.domain.task import TaskStatus, TaskView
from src.domain.update_models import TaskChecklistUpdate, TaskStatusUpdate, TaskUpdate
from src.domain.user import CurrentUser
from src.interface.auth import get_settings, require_auth
from src.models.service_models import DashboardData, TaskListResult
from src.services import analytics_service, task_service


router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskMessage(CamelModel):
    message: str
    task: TaskView


class MessageResponse(CamelModel):
    message: str


@router.post("/create", status_code=http_status.HTTP_201_CREATED, response_model=TaskMessage)
async def create_task(
    payload: TaskCreate,
    user: CurrentUser = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> TaskMessage:
    task = await task_service.create_task(payload=payload, actor=user, strict_access=settings.strict_access_control)
    return TaskMessage(message="Task created successfully", task=task)


@router.get("", response_model=TaskListResult)
async def list_tasks(status: TaskStatus | None = None, user: CurrentUser = Depends(require_auth)) -> TaskListResult:
    """Admins see every task; other users see the tasks assigned to them."""
    return await task_service.list_tasks(actor=user, status=status)


@router.get("/dashboard", response_model=DashboardData)
async def get_dashboard(
    user: CurrentUser = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> DashboardData:
    """Dashboard over all tasks."""
    return await analytics_service.get_global_dashboard(actor=user, strict_access=settings.strict_access_control)


@router.get("/user-dashboard", response_model=DashboardData)
async def get_user_dashboard(user: CurrentUser = Depends(require_auth)) -> DashboardData:
    """Dashboard over the caller's assigned tasks."""
    return await analytics_service.get_user_dashboard(user_id=user.id)


@router.get("/{task_id}", response_model=TaskView)
async def get_task(
    task_id: str,
    user: CurrentUser = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> TaskView:
    return await task_service.get_task(task_id=task_id, actor=user, strict_access=settings.strict_access_control)


@router.put("/{task_id}", response_model=TaskMessage)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    user: CurrentUser = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> TaskMessage:
    task = await task_service.update_task(
        task_id=task_id,
        update=payload,
        actor=user,
        strict_access=settings.strict_access_control,
    )
    return TaskMessage(message="Task updated successfully", task=task)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    user: CurrentUser = Depends(require_auth),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    await task_service.delete_task(task_id=task_id, actor=user, strict_access=settings.strict_access_control)
    return MessageResponse(message="Task deleted successfully")


@router.put("/{task_id}/status", response_model=TaskMessage)
async def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    user: CurrentUser = Depends(require_auth),
) -> TaskMessage:
    task = await task_service.update_task_status(task_id=task_id, status=payload.status, actor=user)
    return TaskMessage(message="Task status updated", task=task)


@router.put("/{task_id}/checklist", response_model=TaskMessage)
async def update_task_checklist(
    task_id: str,
    payload: TaskChecklistUpdate,
    user: CurrentUser = Depends(require_auth),
) -> TaskMessage:
    task = await task_service.update_task_checklist(task_id=task_id, checklist=payload.todo_checklist, actor=user)
    return TaskMessage(message="Task checklist updated", task=task)
