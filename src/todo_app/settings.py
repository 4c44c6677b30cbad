from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - STORE_BACKEND: 'mongo' (default) or 'memory'
    - MONGODB_URI: connection string. Default 'mongodb://127.0.0.1:27017/todo_app'
    - MONGODB_COLLECTION: collection holding the todo documents. Default 'todos'
    - MONGODB_TIMEOUT_MS: server selection timeout used when connecting. Default 5000
    - HOST / PORT: listen address for the HTTP server. Default 0.0.0.0:8080
    - LOG_LEVEL: logging level name. Default 'INFO'
    - METHOD_OVERRIDE_FIELD: form field carrying the overridden method. Default '_method'
    """

    store_backend: str
    mongodb_uri: str
    mongodb_collection: str
    mongodb_timeout_ms: int
    host: str
    port: int
    log_level: str
    method_override_field: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("STORE_BACKEND", "mongo").strip().lower()
    if backend not in {"mongo", "memory"}:
        # Fallback to mongo if unsupported
        backend = "mongo"

    return Settings(
        store_backend=backend,
        mongodb_uri=_get_env("MONGODB_URI", "mongodb://127.0.0.1:27017/todo_app").strip(),
        mongodb_collection=_get_env("MONGODB_COLLECTION", "todos").strip(),
        mongodb_timeout_ms=_parse_int(_get_env("MONGODB_TIMEOUT_MS", "5000"), 5000),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "8080"), 8080),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        method_override_field=_get_env("METHOD_OVERRIDE_FIELD", "_method").strip(),
    )
