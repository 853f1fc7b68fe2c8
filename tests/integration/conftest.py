"""Pytest configuration and fixtures for integration tests against a real SQLite file."""

from collections.abc import AsyncIterator

import pytest

from src.core import db_client


@pytest.fixture
async def sqlite_db(tmp_path) -> AsyncIterator[str]:
    """Initialize a fresh database file and close its connection afterwards."""
    db_path = str(tmp_path / "integration.db")
    await db_client.init_db(db_path=db_path)
    yield db_path
    await db_client.close_connection()
