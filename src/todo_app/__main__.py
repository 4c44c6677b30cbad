"""
Run the todo app with uvicorn: ``python -m todo_app``.

Uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which closes the
database connection before the process exits.
"""
from __future__ import annotations

import logging

import uvicorn

from .settings import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "todo_app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
