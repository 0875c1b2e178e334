"""
mongo_client.py
===============
Thin wrapper around a pymongo ``Database`` used by every router.

The service implements no query logic of its own: reads are full-collection
scans returned as JSON-ready dicts, and the only write is inserting a User.
All methods are synchronous; routers offload them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from quiz_store.models import User
from quiz_store.registry import USERS_COLLECTION

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Wraps any driver failure so routers need not import pymongo."""


class DuplicateUserError(PersistenceError):
    """A User with the same clerkUserId already exists."""


def to_json_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Render ObjectIds (and nested BSON scalars) as JSON-safe values."""
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


class DocumentStore:
    def __init__(self, database: Database, client: Optional[MongoClient] = None):
        self._db = database
        self._client = client

    @classmethod
    def connect(cls, uri: str, default_db: str = "test", timeout_ms: int = 5000) -> "DocumentStore":
        """
        Create a client for *uri*.  pymongo connects lazily, so this never
        blocks; an unreachable server surfaces on the first operation.
        """
        client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        database = client.get_default_database(default=default_db)
        logger.info("MongoDB client created for database '%s'.", database.name)
        return cls(database, client)

    @property
    def database(self) -> Database:
        return self._db

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def ping(self) -> bool:
        try:
            self._db.command("ping")
            return True
        except Exception as exc:
            logger.warning("MongoDB ping failed: %s", exc)
            return False

    def ensure_indexes(self) -> None:
        """Unique index backing the one-User-per-clerkUserId invariant."""
        try:
            self._db[USERS_COLLECTION].create_index(
                [("clerkUserId", ASCENDING)], unique=True, name="clerkUserId_unique",
            )
        except PyMongoError as exc:
            raise PersistenceError(f"could not create user index: {exc}") from exc

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # ── Reads ─────────────────────────────────────────────────────────────

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        try:
            return [to_json_document(doc) for doc in self._db[collection].find()]
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def collection_names(self) -> List[str]:
        try:
            return self._db.list_collection_names()
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc

    def collection_exists(self, name: str) -> bool:
        return name in self.collection_names()

    # ── Writes ────────────────────────────────────────────────────────────

    def insert_user(self, user: User) -> str:
        """
        Insert *user* and return the new document id as a string.

        Upserts on clerkUserId with $setOnInsert, so a second insert for the
        same user never writes, with or without the unique index.
        """
        try:
            result = self._db[USERS_COLLECTION].update_one(
                {"clerkUserId": user.clerk_user_id},
                {"$setOnInsert": user.to_document()},
                upsert=True,
            )
        except DuplicateKeyError as exc:
            raise DuplicateUserError(
                f"user {user.clerk_user_id} already exists"
            ) from exc
        except PyMongoError as exc:
            raise PersistenceError(str(exc)) from exc
        if result.upserted_id is None:
            raise DuplicateUserError(f"user {user.clerk_user_id} already exists")
        return str(result.upserted_id)
