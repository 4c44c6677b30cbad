from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Request

from .errors import StoreNotReady
from .models import TodoEntity
from .settings import Settings, get_settings
from .utils import document_to_entity, parse_todo_id


# PUBLIC_INTERFACE
class TodoStore(ABC):
    """
    Abstract store contract for todo storage backends.

    A store is created once per process, connected before the server accepts
    requests and closed once at shutdown. Every operation is a single round
    trip to the backend.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether connect() has completed and close() has not been called."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish the backend connection. Raises StoreError on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Release the backend connection."""

    @abstractmethod
    async def search(self, query: Optional[str] = None) -> List[TodoEntity]:
        """
        Return todos whose description contains ``query`` (case-sensitive).
        An absent or empty query returns every todo. Order is backend-native.
        """

    @abstractmethod
    async def get_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a todo by id, or None if not found. Raises InvalidId."""

    @abstractmethod
    async def create(self, description: str, priority: int) -> TodoEntity:
        """Create and return a new, not yet completed, todo."""

    @abstractmethod
    async def update(self, todo_id: str, description: str, priority: int) -> bool:
        """
        Set description and priority of an existing todo, leaving other fields
        untouched. Return True if a todo matched. Raises InvalidId.
        """

    @abstractmethod
    async def delete(self, todo_id: str) -> bool:
        """Delete a todo by id. Return True if deleted, False if absent. Raises InvalidId."""

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise StoreNotReady("Todo store is not connected yet, retry shortly")


class InMemoryTodoStore(TodoStore):
    """
    In-memory store suitable for testing and local runs without MongoDB.
    Documents are kept in the same shape as in the todos collection.
    """

    def __init__(self) -> None:
        self._docs: Dict[ObjectId, Dict[str, Any]] = {}
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True

    async def close(self) -> None:
        self._connected = False

    async def search(self, query: Optional[str] = None) -> List[TodoEntity]:
        self._ensure_connected()
        docs = self._docs.values()
        if query:
            docs = [d for d in docs if query in d["description"]]
        return [document_to_entity(d) for d in docs]

    async def get_by_id(self, todo_id: str) -> Optional[TodoEntity]:
        oid = parse_todo_id(todo_id)
        self._ensure_connected()
        doc = self._docs.get(oid)
        return None if doc is None else document_to_entity(doc)

    async def create(self, description: str, priority: int) -> TodoEntity:
        self._ensure_connected()
        doc = {
            "_id": ObjectId(),
            "description": description,
            "completed": False,
            "priority": priority,
        }
        self._docs[doc["_id"]] = doc
        return document_to_entity(doc)

    async def update(self, todo_id: str, description: str, priority: int) -> bool:
        oid = parse_todo_id(todo_id)
        self._ensure_connected()
        doc = self._docs.get(oid)
        if doc is None:
            return False
        # Only the editable fields change
        doc["description"] = description
        doc["priority"] = priority
        return True

    async def delete(self, todo_id: str) -> bool:
        oid = parse_todo_id(todo_id)
        self._ensure_connected()
        return self._docs.pop(oid, None) is not None


# PUBLIC_INTERFACE
def build_store(settings: Optional[Settings] = None) -> TodoStore:
    """
    Factory to return the configured store based on settings.
    - mongo: MongoTodoStore (requires motor)
    - memory: InMemoryTodoStore
    """
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        return InMemoryTodoStore()

    from .db import MongoTodoStore

    return MongoTodoStore(
        settings.mongodb_uri,
        collection=settings.mongodb_collection,
        timeout_ms=settings.mongodb_timeout_ms,
    )


# PUBLIC_INTERFACE
def get_store(request: Request) -> TodoStore:
    """
    FastAPI dependency returning the store injected into the application.

    Raises:
        StoreNotReady: if no store has been attached or it is not connected.
    """
    store: Optional[TodoStore] = getattr(request.app.state, "store", None)
    if store is None or not store.is_connected:
        raise StoreNotReady("Todo store is not connected yet, retry shortly")
    return store
