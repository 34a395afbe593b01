from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, TypedDict


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered user as held by the store.

    Fields:
    - email: identity key, unique and case-sensitive as stored
    - password_hash: salted bcrypt hash; the plaintext password is never stored
    """

    email: str
    password_hash: str


# A task is a schemaless document: "_id" (string) plus arbitrary client fields.
TaskEntity = Dict[str, Any]


@dataclass(frozen=True)
class UpdateOutcome:
    """Result of a partial task update."""

    matched: int
    modified: int
