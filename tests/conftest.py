# tests/conftest.py

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# src.api.main builds a module-level app from the environment on import
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ["PERSISTENCE_BACKEND"] = "memory"
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from src.api.main import create_app  # noqa: E402
from src.api.repositories import InMemoryStore  # noqa: E402
from src.api.settings import Settings  # noqa: E402

from .helpers import SECRET, FakeClock  # noqa: E402


@pytest.fixture()
def settings() -> Settings:
    """
    Explicit settings so tests never depend on the developer's environment.
    """
    return Settings(
        persistence_backend="memory",
        mongo_uri="mongodb://localhost:27017",
        mongo_db_name="task_manager_test",
        tasks_collection="tasks",
        jwt_secret=SECRET,
        jwt_algorithm="HS256",
        token_ttl_days=5,
        cors_allow_origins=["http://localhost:5173", "http://localhost:3000"],
        environment="test",
        cookie_secure=False,
        bcrypt_rounds=4,
        host="127.0.0.1",
        port=3200,
        log_level="INFO",
    )


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def app(settings: Settings, store: InMemoryStore):
    return create_app(settings=settings, store=store)


@pytest.fixture()
def client(app) -> Iterator[TestClient]:
    # Context manager runs the lifespan (store open/close)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


