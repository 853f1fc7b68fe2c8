"""Signup, signin, signout and self-service profile endpoints."""

import logging

from fastapi import APIRouter, Depends, Response, status

from src.core.config import Settings
from src.core.security import TokenSigner
from src.domain.base import CamelModel
from src.domain.create_models import SigninRequest, SignupRequest
from src.domain.update_models import ProfileUpdate
from src.domain.user import CurrentUser, User
from src.interface.auth import (
    clear_access_cookie,
    get_settings,
    get_token_signer,
    require_auth,
    set_access_cookie,
)
from src.services import user_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupResponse(CamelModel):
    message: str
    user: User


class MessageResponse(CamelModel):
    message: str


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse)
async def signup(payload: SignupRequest, settings: Settings = Depends(get_settings)) -> SignupResponse:
    """Register a new user; a matching admin join code grants the admin role."""
    user = await user_service.signup(request=payload, settings=settings)
    return SignupResponse(message="Signup successful", user=user)


@router.post("/signin", response_model=User)
async def signin(
    payload: SigninRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    signer: TokenSigner = Depends(get_token_signer),
) -> User:
    """Sign in and receive the access token as an HTTP-only cookie."""
    result = await user_service.signin(request=payload, signer=signer)
    set_access_cookie(response, result.access_token, settings)
    return result.user


@router.post("/signout", response_model=MessageResponse)
async def signout(response: Response) -> MessageResponse:
    """Clear the access token cookie."""
    clear_access_cookie(response)
    logger.info("user_signed_out")
    return MessageResponse(message="User has been logged out successfully")


@router.get("/profile", response_model=User)
async def get_profile(user: CurrentUser = Depends(require_auth)) -> User:
    """Return the caller's own profile."""
    return await user_service.get_profile(user_id=user.id)


@router.put("/profile", response_model=User)
async def update_profile(payload: ProfileUpdate, user: CurrentUser = Depends(require_auth)) -> User:
    """Update the caller's own name, email or password."""
    return await user_service.update_profile(user_id=user.id, update=payload)
