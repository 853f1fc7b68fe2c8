"""Authentication gate and request-scoped dependencies."""

import logging

from fastapi import Depends, Request, Response

from src.core.config import Settings, constants
from src.core.errors import ForbiddenError, TaskboardError, UnauthenticatedError
from src.core.security import TokenSigner
from src.domain.user import CurrentUser


logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_token_signer(request: Request) -> TokenSigner:
    signer: TokenSigner | None = request.app.state.token_signer
    if signer is None:
        logger.error("token_signer_not_configured")
        raise TaskboardError("Access token signing is not configured")
    return signer


def _extract_token(request: Request) -> str | None:
    """Read the access token from its cookie, falling back to an ``Authorization: Bearer`` header."""
    token = request.cookies.get(constants.ACCESS_TOKEN_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def require_auth(request: Request, signer: TokenSigner = Depends(get_token_signer)) -> CurrentUser:
    """Verify the caller's access token and return the identity it carries.

    The identity store is not consulted: a validly signed token for a deleted
    user is accepted until it expires.
    """
    token = _extract_token(request)
    if not token:
        logger.warning("auth_missing_token", extra={"path": request.url.path})
        raise UnauthenticatedError()

    return signer.verify(token)


async def admin_only(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
    """Allow only admins; runs after require_auth has resolved the identity."""
    if not user.is_admin:
        logger.warning("admin_only_denied", extra={"user_id": user.id})
        raise ForbiddenError("Access denied, admin only")
    return user


def set_access_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the HTTP-only access token cookie."""
    response.set_cookie(
        key=constants.ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_max_age_seconds,
    )


def clear_access_cookie(response: Response) -> None:
    """Remove the access token cookie on the client. The token itself stays valid if replayed."""
    response.delete_cookie(key=constants.ACCESS_TOKEN_COOKIE, httponly=True, samesite="lax")
