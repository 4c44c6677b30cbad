from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..errors import InvalidId, NotFound
from ..repositories import TodoStore, get_store
from ..schemas import parse_todo_form

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


def _to_list() -> RedirectResponse:
    # 303 so the browser follows up with a GET whatever the original method
    return RedirectResponse(url="/todos", status_code=status.HTTP_303_SEE_OTHER)


# PUBLIC_INTERFACE
@router.get("", response_class=HTMLResponse, summary="List Todos")
async def list_todos(
    request: Request,
    query: Optional[str] = Query(None, description="Substring to look for in descriptions"),
    store: TodoStore = Depends(get_store),
) -> HTMLResponse:
    """
    List todos, keeping those whose description contains ``query`` when given.
    """
    todos = await store.search(query)
    return templates.TemplateResponse(
        request, "todos/index.html", {"todos": todos, "query": query or ""}
    )


# PUBLIC_INTERFACE
@router.get("/new", response_class=HTMLResponse, summary="New Todo Form")
async def new_todo(request: Request) -> HTMLResponse:
    """Render the empty creation form."""
    return templates.TemplateResponse(request, "todos/new.html", {})


# PUBLIC_INTERFACE
@router.post("", summary="Create Todo")
async def create_todo(request: Request, store: TodoStore = Depends(get_store)) -> RedirectResponse:
    """
    Create a todo from the submitted form and go back to the list.
    """
    form = parse_todo_form(await request.form())
    created = await store.create(form.description, form.priority)
    logger.info("Created todo %s", created["id"])
    return _to_list()


# PUBLIC_INTERFACE
@router.get("/{todo_id}/edit", response_class=HTMLResponse, summary="Edit Todo Form")
async def edit_todo(
    request: Request, todo_id: str, store: TodoStore = Depends(get_store)
) -> HTMLResponse:
    """
    Render the edit form. A malformed or unknown id renders the form without
    a todo instead of failing.
    """
    try:
        todo = await store.get_by_id(todo_id)
    except InvalidId:
        logger.info("Edit requested for malformed id %r", todo_id)
        todo = None
    return templates.TemplateResponse(request, "todos/edit.html", {"todo": todo})


# PUBLIC_INTERFACE
@router.put("/{todo_id}", summary="Update Todo")
async def update_todo(
    request: Request, todo_id: str, store: TodoStore = Depends(get_store)
) -> RedirectResponse:
    """
    Replace description and priority of a todo, keeping its completed flag.
    """
    form = parse_todo_form(await request.form())
    if not await store.update(todo_id, form.description, form.priority):
        raise NotFound(f"Todo {todo_id} not found")
    return _to_list()


# PUBLIC_INTERFACE
@router.delete("/{todo_id}", summary="Delete Todo")
async def delete_todo(todo_id: str, store: TodoStore = Depends(get_store)) -> RedirectResponse:
    """
    Delete a todo. Deleting an id that no longer exists is not an error.
    """
    if not await store.delete(todo_id):
        logger.info("Delete of absent todo %s ignored", todo_id)
    return _to_list()
