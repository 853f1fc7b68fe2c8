"""User domain models and enums."""

from enum import StrEnum

from pydantic import Field

from src.domain.base import CamelModel


class UserRole(StrEnum):
    """Coarse permission class of a user."""

    ADMIN = "admin"
    USER = "user"


class User(CamelModel):
    """User data transfer object (never carries the password hash)."""

    id: str = Field(..., description="Unique user ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    profile_image_url: str | None = Field(default=None, description="Profile image URL")
    role: UserRole = Field(default=UserRole.USER, description="User role")


class CurrentUser(CamelModel):
    """Identity resolved from a verified access token."""

    id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
