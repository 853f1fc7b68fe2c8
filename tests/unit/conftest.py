"""Pytest configuration and fixtures for unit tests."""

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core.security import hash_password
from src.domain.user import UserRole
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.count_records", in_memory_db.count_records)
    monkeypatch.setattr("src.core.db_client.count_by_field", in_memory_db.count_by_field)
    monkeypatch.setattr("src.core.db_client.iter_records", in_memory_db.iter_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def client(test_app: FastAPI, patched_db) -> TestClient:
    """Provide FastAPI test client backed by the in-memory database."""
    return TestClient(test_app)


@pytest.fixture
def user_factory(patched_db):
    """Factory for creating users directly in the in-memory database.

    Usage:
        user = await user_factory(name="Alice", role=UserRole.ADMIN)
    """
    counter = {"n": 0}

    async def _create_user(**kwargs: Any) -> dict[str, Any]:
        counter["n"] += 1
        password = kwargs.pop("password", "secret-password")
        data = {
            "name": kwargs.pop("name", f"User {counter['n']}"),
            "email": kwargs.pop("email", f"user{counter['n']}@example.com"),
            "password_hash": hash_password(password),
            "profile_image_url": kwargs.pop("profile_image_url", None),
            "role": str(kwargs.pop("role", UserRole.USER)),
            **kwargs,
        }
        return await patched_db.create_record(collection="users", data=data)

    return _create_user


@pytest.fixture
def task_factory(patched_db):
    """Factory for creating task records directly in the in-memory database.

    Usage:
        task = await task_factory(assigned_to=[user["id"]], status="Completed")
    """
    counter = {"n": 0}

    async def _create_task(**kwargs: Any) -> dict[str, Any]:
        counter["n"] += 1
        data = {
            "title": f"Task {counter['n']}",
            "description": "",
            "priority": "Medium",
            "due_date": None,
            "assigned_to": [],
            "todo_checklist": [],
            "attachments": [],
            "status": "Pending",
            "progress": 0,
            "created_by": None,
        }
        data.update(kwargs)
        return await patched_db.create_record(collection="tasks", data=data)

    return _create_task
