"""Pytest configuration and shared fixtures."""

import pytest
from fastapi import FastAPI

from src.core.config import Settings, constants
from src.core.security import TokenSigner
from src.domain.user import CurrentUser, UserRole
from src.main import create_app


TEST_SECRET_KEY = "test-secret-key-for-signing"
TEST_ADMIN_JOIN_CODE = "let-me-admin"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the lowest bcrypt cost in tests; stored hashes carry their own cost factor."""
    monkeypatch.setattr(constants, "PASSWORD_HASH_ROUNDS", 4)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Override settings for testing."""
    return Settings(
        sqlite_db_path=str(tmp_path / "taskboard.db"),
        secret_key=TEST_SECRET_KEY,
        admin_join_code=TEST_ADMIN_JOIN_CODE,
        access_token_max_age_seconds=3600,
        logfire_token=None,
    )


@pytest.fixture
def token_signer(test_settings: Settings) -> TokenSigner:
    return TokenSigner(test_settings)


@pytest.fixture
def test_app(test_settings: Settings) -> FastAPI:
    """Application built around the test settings (lifespan is not run)."""
    return create_app(test_settings)


def bearer_headers(signer: TokenSigner, user_id: str, role: UserRole = UserRole.USER) -> dict[str, str]:
    """Authorization header carrying a freshly issued token."""
    return {"Authorization": f"Bearer {signer.issue(user_id=user_id, role=role)}"}


def make_actor(user_id: str, role: UserRole = UserRole.USER) -> CurrentUser:
    return CurrentUser(id=user_id, role=role)
