"""Configuration management for taskboard."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Built once at process start (see ``src.main.create_app``) and handed to the
    components that need it; services never import a global instance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    sqlite_db_path: str = Field(default="./data/taskboard.db", description="Path to the SQLite database file")

    # Authentication
    secret_key: str | None = Field(default=None, description="Secret used to sign access tokens")
    admin_join_code: str | None = Field(
        default=None, description="Join code that grants the admin role at signup (unset disables admin signup)"
    )
    access_token_max_age_seconds: int | None = Field(
        default=None, description="Access token lifetime in seconds (None means tokens never expire)"
    )
    is_production: bool = Field(default=False, description="Marks cookies as Secure when true")

    # Authorization
    strict_access_control: bool = Field(
        default=False,
        description="Restrict task create/update/delete and the global dashboard to admins, task reads to admins "
        "and assignees",
    )

    # Users
    default_profile_image_url: str = Field(
        default="https://img.freepik.com/premium-vector/user-profile-icon-circle_1256048-12499.jpg",
        description="Placeholder profile image for users who did not upload one",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment reported to Logfire")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Authentication
    ACCESS_TOKEN_COOKIE: str = "access_token"
    ACCESS_TOKEN_SALT: str = "access-token"
    PASSWORD_HASH_ROUNDS: int = 12
    PASSWORD_MAX_BYTES: int = 72

    # Dashboards
    RECENT_TASKS_LIMIT: int = 10

    # Rows fetched per query when reading a whole collection
    READ_BATCH_SIZE: int = 500


def get_settings() -> Settings:
    """Build application settings from the environment."""
    return Settings()


constants = Constants()
