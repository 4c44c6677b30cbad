"""
Error kinds raised by the todo store and the request boundary.

Each carries a human-readable message that is sent back to the user as a
plain-text body by the handlers registered in ``main``.
"""
from __future__ import annotations


class TodoAppError(Exception):
    """Base class for all application errors."""

    status_code = 500


class StoreError(TodoAppError):
    """A database operation failed (connection lost, malformed query...)."""

    status_code = 500


class StoreNotReady(StoreError):
    """The store was used before its connection was established."""

    status_code = 503


class InvalidId(TodoAppError):
    """An identifier string could not be parsed into an ObjectId."""

    status_code = 400


class InvalidInput(TodoAppError):
    """Submitted form data is missing a field or has a non-numeric priority."""

    status_code = 400


class NotFound(TodoAppError):
    """No todo matched the given identifier."""

    status_code = 404
