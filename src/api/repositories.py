from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bson import ObjectId

from .models import TaskEntity, UpdateOutcome, UserEntity
from .settings import Settings


# PUBLIC_INTERFACE
class Store(ABC):
    """
    Storage contract for users and tasks.

    A store is owned by the application: it is opened at startup, handed to
    request handlers through dependencies and closed at shutdown. Task ids are
    opaque strings; ids the backend cannot parse behave as "not found".
    """

    name: str = "abstract"

    def open(self) -> None:
        """Acquire connections/resources. Default: nothing to do."""

    def close(self) -> None:
        """Release connections/resources. Default: nothing to do."""

    def ping(self) -> bool:
        """Return True if the backend is reachable."""
        return True

    # Users

    @abstractmethod
    def find_user(self, email: str) -> Optional[UserEntity]:
        """Return the user stored under `email`, or None."""

    @abstractmethod
    def insert_user(self, email: str, password_hash: str) -> bool:
        """Insert a user. Return False if the email is already registered."""

    # Tasks

    @abstractmethod
    def insert_task(self, fields: Mapping[str, Any]) -> str:
        """Insert a task and return its new id. Any supplied `_id` is ignored."""

    @abstractmethod
    def list_tasks(self) -> List[TaskEntity]:
        """Return every task in insertion order."""

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> UpdateOutcome:
        """Merge `fields` into the task. Fields not supplied are left untouched."""

    @abstractmethod
    def delete_task(self, task_id: str) -> int:
        """Delete a task by id. Return the number of deleted tasks (0 or 1)."""

    @abstractmethod
    def delete_tasks(self, task_ids: Iterable[str]) -> int:
        """Delete every task whose id is in `task_ids`. Return the deleted count."""


def _strip_id(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k != "_id"}


class InMemoryStore(Store):
    """
    Thread-safe in-memory store suitable for testing and local runs.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[str, UserEntity] = {}
        self._tasks: Dict[str, TaskEntity] = {}

    def find_user(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(email)
            return None if user is None else UserEntity(**user)

    def insert_user(self, email: str, password_hash: str) -> bool:
        with self._lock:
            if email in self._users:
                return False
            self._users[email] = UserEntity(email=email, password_hash=password_hash)
            return True

    def insert_task(self, fields: Mapping[str, Any]) -> str:
        task_id = str(ObjectId())
        task: TaskEntity = {"_id": task_id, **copy.deepcopy(_strip_id(fields))}
        with self._lock:
            self._tasks[task_id] = task
        return task_id

    def list_tasks(self) -> List[TaskEntity]:
        with self._lock:
            # Return copies to avoid external mutation
            return [copy.deepcopy(t) for t in self._tasks.values()]

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        with self._lock:
            task = self._tasks.get(task_id)
            return None if task is None else copy.deepcopy(task)

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> UpdateOutcome:
        changes = copy.deepcopy(_strip_id(fields))
        with self._lock:
            existing = self._tasks.get(task_id)
            if existing is None:
                return UpdateOutcome(matched=0, modified=0)
            updated = {**existing, **changes}
            modified = 0 if updated == existing else 1
            self._tasks[task_id] = updated
            return UpdateOutcome(matched=1, modified=modified)

    def delete_task(self, task_id: str) -> int:
        with self._lock:
            return 0 if self._tasks.pop(task_id, None) is None else 1

    def delete_tasks(self, task_ids: Iterable[str]) -> int:
        deleted = 0
        with self._lock:
            for task_id in set(task_ids):
                if self._tasks.pop(task_id, None) is not None:
                    deleted += 1
        return deleted


# PUBLIC_INTERFACE
def create_store(settings: Settings) -> Store:
    """
    Factory to return the configured store based on settings.
    - memory: InMemoryStore
    - mongo: MongoStore (pymongo)
    """
    if settings.persistence_backend == "mongo":
        from .db import MongoStore

        return MongoStore(
            uri=settings.mongo_uri,
            db_name=settings.mongo_db_name,
            tasks_collection=settings.tasks_collection,
        )
    return InMemoryStore()
