# tests/helpers.py

from __future__ import annotations

from datetime import datetime
from typing import Dict

from fastapi.testclient import TestClient

SECRET = "unit-test-secret-please-change-0123456789"


class FakeClock:
    """Mutable clock for TokenService tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def signup(client: TestClient, email: str = "a@x.com", password: str = "p1") -> str:
    res = client.post("/signup", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
