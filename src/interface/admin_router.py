"""Admin-only endpoints: team listing and CSV reports."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from src.domain.user import CurrentUser
from src.interface.auth import admin_only
from src.models.service_models import MemberSummary
from src.services import report_service, user_service


logger = logging.getLogger(__name__)

users_router = APIRouter(prefix="/users", tags=["users"])
reports_router = APIRouter(prefix="/reports", tags=["reports"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@users_router.get("", response_model=list[MemberSummary])
async def list_members(_admin: CurrentUser = Depends(admin_only)) -> list[MemberSummary]:
    """Regular users with their per-status task counts."""
    return await user_service.list_members()


@reports_router.get("/export/tasks")
async def export_tasks(admin: CurrentUser = Depends(admin_only)) -> Response:
    """Download every task as CSV."""
    content = await report_service.export_tasks_csv()
    logger.info("report_downloaded", extra={"report": "tasks", "user_id": admin.id})
    return _csv_response(content, "tasks_report.csv")


@reports_router.get("/export/users")
async def export_users(admin: CurrentUser = Depends(admin_only)) -> Response:
    """Download every user with task counts as CSV."""
    content = await report_service.export_users_csv()
    logger.info("report_downloaded", extra={"report": "users", "user_id": admin.id})
    return _csv_response(content, "users_report.csv")
