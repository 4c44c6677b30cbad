from __future__ import annotations

from typing import Any, Mapping

from bson import ObjectId
from bson.errors import InvalidId as BsonInvalidId

from .errors import InvalidId
from .models import TodoEntity


# PUBLIC_INTERFACE
def parse_todo_id(raw: str) -> ObjectId:
    """
    Parse a todo identifier taken from a URL into an ObjectId.

    Raises:
        InvalidId: if ``raw`` is not a 24-character hex string.
    """
    try:
        return ObjectId(raw)
    except (BsonInvalidId, TypeError) as e:
        raise InvalidId(f"Invalid todo id: {raw!r}") from e


# PUBLIC_INTERFACE
def document_to_entity(doc: Mapping[str, Any]) -> TodoEntity:
    """
    Convert a stored document into the TodoEntity handed to views.

    Documents written by other tools may miss fields; those are filled with
    the creation defaults.
    """
    return {
        "id": str(doc["_id"]),
        "description": doc.get("description") or "",
        "completed": bool(doc.get("completed", False)),
        "priority": doc.get("priority", 0),
    }
