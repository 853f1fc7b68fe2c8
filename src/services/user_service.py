"""User service for signup, signin, profiles and member listings."""

import logging
import secrets
from typing import Any

from src.core import db_client
from src.core.config import Settings, constants
from src.core.db_client import RecordNotFoundError, sanitize_param
from src.core.errors import ConflictError, InvalidCredentialsError, InvalidRequestError, NotFoundError
from src.core.logging import span
from src.core.security import TokenSigner, hash_password, verify_password
from src.domain.create_models import SigninRequest, SignupRequest
from src.domain.task import AssigneeSummary, TaskStatus
from src.domain.update_models import ProfileUpdate
from src.domain.user import User, UserRole
from src.models.service_models import MemberSummary, SigninResult


logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def _find_by_email(email: str) -> dict[str, Any] | None:
    return await db_client.get_first_record(
        collection="users",
        filter_query=f'email = "{sanitize_param(email)}"',
    )


def _resolve_role(admin_join_code: str | None, settings: Settings) -> UserRole:
    """Grant admin only when a join code is configured and the supplied one matches it."""
    if admin_join_code and settings.admin_join_code:
        if secrets.compare_digest(admin_join_code, settings.admin_join_code):
            return UserRole.ADMIN
    return UserRole.USER


async def signup(*, request: SignupRequest, settings: Settings) -> User:
    """Register a new user.

    Args:
        request: Signup payload
        settings: Application settings (admin join code, default profile image)

    Returns:
        The created user

    Raises:
        InvalidRequestError: If name, email or password is empty
        ConflictError: If the email is already registered
    """
    with span("user_service.signup"):
        name = request.name.strip()
        email = _normalize_email(request.email)
        if not name or not email or not request.password:
            raise InvalidRequestError("All fields are required")

        if await _find_by_email(email):
            logger.warning("signup_duplicate_email", extra={"email": email})
            raise ConflictError("User already exists")

        role = _resolve_role(request.admin_join_code, settings)
        record = await db_client.create_record(
            collection="users",
            data={
                "name": name,
                "email": email,
                "password_hash": hash_password(request.password),
                "profile_image_url": request.profile_image_url or settings.default_profile_image_url,
                "role": role.value,
            },
        )

        logger.info("user_signed_up", extra={"user_id": record["id"], "role": role.value})
        return User.model_validate(record)


async def signin(*, request: SigninRequest, signer: TokenSigner) -> SigninResult:
    """Authenticate by email and password and issue an access token.

    Raises:
        InvalidRequestError: If email or password is empty
        InvalidCredentialsError: If the email is unknown or the password is wrong
    """
    with span("user_service.signin"):
        email = _normalize_email(request.email)
        if not email or not request.password:
            raise InvalidRequestError("All fields are required")

        record = await _find_by_email(email)
        if record is None:
            logger.warning("signin_unknown_email")
            raise InvalidCredentialsError()

        if not verify_password(request.password, record["password_hash"]):
            logger.warning("signin_wrong_password", extra={"user_id": record["id"]})
            raise InvalidCredentialsError()

        user = User.model_validate(record)
        token = signer.issue(user_id=user.id, role=user.role)

        logger.info("user_signed_in", extra={"user_id": user.id})
        return SigninResult(user=user, access_token=token)


async def get_profile(*, user_id: str) -> User:
    """Get the authenticated user's own profile.

    Raises:
        NotFoundError: If the user record no longer exists
    """
    try:
        record = await db_client.get_record(collection="users", record_id=user_id)
    except RecordNotFoundError as err:
        raise NotFoundError("User not found") from err
    return User.model_validate(record)


async def update_profile(*, user_id: str, update: ProfileUpdate) -> User:
    """Update the authenticated user's name, email or password. Role is never touched.

    Raises:
        NotFoundError: If the user record no longer exists
        InvalidRequestError: If the new name is blank
        ConflictError: If the new email belongs to another user
    """
    with span("user_service.update_profile"):
        try:
            current = await db_client.get_record(collection="users", record_id=user_id)
        except RecordNotFoundError as err:
            raise NotFoundError("User not found") from err

        data: dict[str, Any] = {}
        if update.name is not None:
            name = update.name.strip()
            if not name:
                raise InvalidRequestError("Name cannot be empty")
            data["name"] = name
        if update.email is not None:
            email = _normalize_email(update.email)
            if email != current["email"]:
                existing = await _find_by_email(email)
                if existing and existing["id"] != user_id:
                    raise ConflictError("Email already in use")
                data["email"] = email
        if update.password is not None:
            data["password_hash"] = hash_password(update.password)

        if not data:
            return User.model_validate(current)

        record = await db_client.update_record(collection="users", record_id=user_id, data=data)
        logger.info("profile_updated", extra={"user_id": user_id, "fields": sorted(data)})
        return User.model_validate(record)


async def get_users_by_ids(*, user_ids: list[str]) -> dict[str, dict[str, Any]]:
    """Fetch user records for a set of ids in one query, keyed by id. Unknown ids are omitted."""
    # Ids are integer keys, so anything else cannot match a user
    unique_ids = sorted({uid for uid in user_ids if uid.isdigit()})
    if not unique_ids:
        return {}

    or_clause = " || ".join(f'id = "{sanitize_param(uid)}"' for uid in unique_ids)
    records = await db_client.list_records(
        collection="users",
        filter_query=f"({or_clause})",
        per_page=len(unique_ids),
    )
    return {record["id"]: record for record in records}


def to_assignee_summary(record: dict[str, Any]) -> AssigneeSummary:
    return AssigneeSummary.model_validate(record)


async def task_counts_by_user() -> dict[str, dict[str, int]]:
    """Count assigned tasks per user id and status."""
    counts: dict[str, dict[str, int]] = {}
    async for task in db_client.iter_records(collection="tasks", batch_size=constants.READ_BATCH_SIZE):
        for assignee_id in task.get("assigned_to", []):
            per_status = counts.setdefault(str(assignee_id), {})
            per_status[task["status"]] = per_status.get(task["status"], 0) + 1
    return counts


async def list_members() -> list[MemberSummary]:
    """List regular users with counts of the tasks assigned to them per status."""
    with span("user_service.list_members"):
        counts = await task_counts_by_user()

        members = []
        async for user in db_client.iter_records(
            collection="users",
            filter_query=f'role = "{UserRole.USER.value}"',
            sort="name",
            batch_size=constants.READ_BATCH_SIZE,
        ):
            per_status = counts.get(user["id"], {})
            members.append(
                MemberSummary.model_validate(
                    {
                        **user,
                        "pending_tasks": per_status.get(TaskStatus.PENDING.value, 0),
                        "in_progress_tasks": per_status.get(TaskStatus.IN_PROGRESS.value, 0),
                        "completed_tasks": per_status.get(TaskStatus.COMPLETED.value, 0),
                    }
                )
            )
        return members
