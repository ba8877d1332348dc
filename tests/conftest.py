"""Shared fixtures: demo-mode settings, an in-memory store and a fixed clock."""

from __future__ import annotations

import base64
from collections.abc import Generator
from datetime import date
from typing import Any

import pytest
from fastapi.testclient import TestClient

from timeledger.api.app import create_app
from timeledger.core.settings import Settings
from timeledger.storage.memory import InMemoryContentStore

AUTH = ("editor", "s3cret")
FIXED_DAY = date(2025, 3, 30)


def make_settings(**overrides: Any) -> Settings:
    """Demo-mode settings with the gate on, isolated from `.env` files."""
    values: dict[str, Any] = {
        "mode": "demo",
        "environment": "test",
        "github_username": "owner",
        "github_repo": "timeline",
        "auth_username": AUTH[0],
        "auth_password": AUTH[1],
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def fixed_clock() -> date:
    return FIXED_DAY


def basic_header(username: str = AUTH[0], password: str = AUTH[1]) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture  # type: ignore[misc]
def settings() -> Settings:
    return make_settings()


@pytest.fixture  # type: ignore[misc]
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture  # type: ignore[misc]
def client(settings: Settings, store: InMemoryContentStore) -> Generator[TestClient, None, None]:
    """API client over a fresh in-memory store."""
    app = create_app(settings, store=store, clock=fixed_clock)
    with TestClient(app) as c:
        yield c
