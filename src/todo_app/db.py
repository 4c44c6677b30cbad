from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, cast

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from .errors import StoreError
from .models import TodoEntity
from .repositories import TodoStore
from .utils import document_to_entity, parse_todo_id

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "todo_app"


def redact_uri(uri: str) -> str:
    """Drop the user:password@ part of a connection string before showing it."""
    scheme, sep, rest = uri.partition("://")
    if not sep:
        return uri
    hosts, slash, tail = rest.partition("/")
    if "@" in hosts:
        hosts = "***@" + hosts.rpartition("@")[2]
    return f"{scheme}{sep}{hosts}{slash}{tail}"


@dataclass(frozen=True)
class _Fields:
    id: str = "_id"
    description: str = "description"
    completed: str = "completed"
    priority: str = "priority"


_FIELDS = _Fields()


class MongoTodoStore(TodoStore):
    """
    MongoDB store implementing the TodoStore interface on top of motor.

    The client is created in connect(), which also pings the server so that
    an unreachable database fails startup instead of the first request.
    """

    def __init__(
        self,
        uri: str,
        collection: str = "todos",
        timeout_ms: int = 5000,
        client: Optional[AsyncIOMotorClient] = None,
    ) -> None:
        self._uri = uri
        self._collection_name = collection
        self._timeout_ms = timeout_ms
        self._client = client
        self._collection: Optional[AsyncIOMotorCollection] = None

    @property
    def is_connected(self) -> bool:
        return self._collection is not None

    async def connect(self) -> None:
        if self._client is None:
            self._client = AsyncIOMotorClient(self._uri, serverSelectionTimeoutMS=self._timeout_ms)
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            raise StoreError(f"Could not connect to {redact_uri(self._uri)}: {e}") from e
        db = self._client.get_default_database(DEFAULT_DATABASE)
        self._collection = db[self._collection_name]
        logger.info("Successfully connected to DB: %s", redact_uri(self._uri))

    async def close(self) -> None:
        client, self._client = self._client, None
        self._collection = None
        if client is not None:
            client.close()

    @property
    def _todos(self) -> AsyncIOMotorCollection:
        self._ensure_connected()
        return cast(AsyncIOMotorCollection, self._collection)

    async def search(self, query: Optional[str] = None) -> List[TodoEntity]:
        # Substring pattern match on the description, not a text index
        flt: Dict[str, Any] = {_FIELDS.description: {"$regex": re.escape(query)}} if query else {}
        try:
            docs = await self._todos.find(flt).to_list(length=None)
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return [document_to_entity(d) for d in docs]

    async def get_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        oid = parse_todo_id(todo_id)
        try:
            doc = await self._todos.find_one({_FIELDS.id: oid})
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return document_to_entity(doc) if doc else None

    async def create(self, description: str, priority: int) -> TodoEntity:
        doc: Dict[str, Any] = {
            _FIELDS.description: description,
            _FIELDS.completed: False,
            _FIELDS.priority: priority,
        }
        try:
            result = await self._todos.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        doc[_FIELDS.id] = result.inserted_id
        return document_to_entity(doc)

    async def update(self, todo_id: str, description: str, priority: int) -> bool:
        oid = parse_todo_id(todo_id)
        # $set keeps fields not being edited, completed in particular
        changes = {_FIELDS.description: description, _FIELDS.priority: priority}
        try:
            result = await self._todos.update_one({_FIELDS.id: oid}, {"$set": changes})
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return result.matched_count > 0

    async def delete(self, todo_id: str) -> bool:
        oid = parse_todo_id(todo_id)
        try:
            result = await self._todos.delete_one({_FIELDS.id: oid})
        except PyMongoError as e:
            raise StoreError(str(e)) from e
        return result.deleted_count > 0
