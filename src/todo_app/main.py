from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from .errors import StoreError, StoreNotReady, TodoAppError
from .middleware import MethodOverrideMiddleware
from .repositories import TodoStore, build_store
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Connect the store before serving and close it once on shutdown.

    A failed connection propagates and aborts startup. A failed close is only
    logged so that shutdown always completes.
    """
    store: TodoStore = app.state.store
    await store.connect()
    try:
        yield
    finally:
        logger.info("Shutting down gracefully...")
        try:
            await store.close()
        except Exception:
            logger.exception("Error while closing the todo store")


async def todo_app_exception_handler(request: Request, exc: TodoAppError) -> PlainTextResponse:
    """
    Report application errors as a plain-text body with the error's status.
    Store failures keep the driver's detail so the user can report it.
    """
    if isinstance(exc, StoreError) and not isinstance(exc, StoreNotReady):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        body = f"Something exploded! Error: {exc}"
    else:
        body = str(exc)
    return PlainTextResponse(body, status_code=exc.status_code)


# PUBLIC_INTERFACE
def create_app(store: Optional[TodoStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around a store.

    The store is attached to ``app.state`` and handed to routes through the
    ``get_store`` dependency; when omitted it is built from settings.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Todo App",
        description="Server-rendered todo list backed by MongoDB.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else build_store(settings)

    app.add_middleware(MethodOverrideMiddleware, field=settings.method_override_field)
    app.add_exception_handler(TodoAppError, todo_app_exception_handler)

    @app.get("/", include_in_schema=False)
    async def home() -> RedirectResponse:
        """Send the home page to the todo list."""
        return RedirectResponse(url="/todos", status_code=302)

    app.include_router(todos_router.router)
    return app


app = create_app()
