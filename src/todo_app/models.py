from __future__ import annotations

from typing import TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item as handed to views.

    Fields:
    - id: Database-assigned identifier, as its 24-character hex string
    - description: Free-text description
    - completed: Boolean completion flag (False on creation)
    - priority: Integer priority, unconstrained range
    """

    id: str
    description: str
    completed: bool
    priority: int
