import pytest
from fastapi.testclient import TestClient

from todo_app.main import create_app
from todo_app.repositories import InMemoryTodoStore


@pytest.fixture
def store():
    return InMemoryTodoStore()


@pytest.fixture
def app(store):
    return create_app(store=store)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan, which connects the store
    with TestClient(app) as c:
        yield c
