from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import StoreError
from .models import TaskEntity, UpdateOutcome, UserEntity
from .repositories import Store

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


def _object_id(value: Any) -> Optional[ObjectId]:
    """Parse a client-supplied id; unparsable ids map to None."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _to_task(doc: Mapping[str, Any]) -> TaskEntity:
    task = dict(doc)
    task["_id"] = str(task["_id"])
    return task


class MongoStore(Store):
    """
    MongoDB-backed store using pymongo.

    The client is created in open() and released in close(). Every driver
    failure surfaces as StoreError so handlers never leak driver details.

    Example:
        store = MongoStore(uri="mongodb://localhost:27017", db_name="task_manager")
        store.open()
        try:
            store.insert_task({"title": "x"})
        finally:
            store.close()
    """

    name = "mongo"

    def __init__(
        self,
        uri: str,
        db_name: str,
        tasks_collection: str = "tasks",
        client: Optional[MongoClient] = None,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._tasks_name = tasks_collection
        self._client: Optional[MongoClient] = client
        self._owns_client = client is None
        self._db: Optional[Database] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    def _database(self) -> Database:
        if self._db is None:
            raise StoreError("Database not connected. Call open() first.")
        return self._db

    @property
    def users(self) -> Collection:
        return self._database()[USERS_COLLECTION]

    @property
    def tasks(self) -> Collection:
        return self._database()[self._tasks_name]

    def open(self) -> None:
        if self._db is not None:
            return
        try:
            if self._client is None:
                self._client = MongoClient(self._uri)
            self._db = self._client[self._db_name]
            # Enforces one account per email even under concurrent signups.
            self._db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
        except PyMongoError as e:
            raise StoreError() from e
        logger.info("Connected to MongoDB database %r", self._db_name)

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._db = None
        logger.info("MongoDB connection closed")

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            logger.warning("MongoDB ping failed: %s", exc)
            return False
        return True

    # Users

    def find_user(self, email: str) -> Optional[UserEntity]:
        try:
            doc = self.users.find_one({"email": email})
        except PyMongoError as e:
            raise StoreError() from e
        if doc is None:
            return None
        return UserEntity(email=doc["email"], password_hash=doc.get("password_hash", ""))

    def insert_user(self, email: str, password_hash: str) -> bool:
        try:
            self.users.insert_one({"email": email, "password_hash": password_hash})
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            raise StoreError() from e
        return True

    # Tasks

    def insert_task(self, fields: Mapping[str, Any]) -> str:
        doc: Dict[str, Any] = {k: v for k, v in fields.items() if k != "_id"}
        try:
            result = self.tasks.insert_one(doc)
        except PyMongoError as e:
            raise StoreError() from e
        return str(result.inserted_id)

    def list_tasks(self) -> List[TaskEntity]:
        try:
            return [_to_task(doc) for doc in self.tasks.find({})]
        except PyMongoError as e:
            raise StoreError() from e

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        oid = _object_id(task_id)
        if oid is None:
            return None
        try:
            doc = self.tasks.find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError() from e
        return None if doc is None else _to_task(doc)

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> UpdateOutcome:
        oid = _object_id(task_id)
        if oid is None:
            return UpdateOutcome(matched=0, modified=0)
        changes = {k: v for k, v in fields.items() if k != "_id"}
        try:
            if not changes:
                matched = self.tasks.count_documents({"_id": oid}, limit=1)
                return UpdateOutcome(matched=matched, modified=0)
            result = self.tasks.update_one({"_id": oid}, {"$set": changes})
        except PyMongoError as e:
            raise StoreError() from e
        return UpdateOutcome(matched=result.matched_count, modified=result.modified_count)

    def delete_task(self, task_id: str) -> int:
        oid = _object_id(task_id)
        if oid is None:
            return 0
        try:
            return self.tasks.delete_one({"_id": oid}).deleted_count
        except PyMongoError as e:
            raise StoreError() from e

    def delete_tasks(self, task_ids: Iterable[str]) -> int:
        oids = [oid for oid in (_object_id(t) for t in task_ids) if oid is not None]
        if not oids:
            return 0
        try:
            return self.tasks.delete_many({"_id": {"$in": oids}}).deleted_count
        except PyMongoError as e:
            raise StoreError() from e
