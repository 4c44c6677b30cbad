import asyncio

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from todo_app.errors import StoreError
from todo_app.main import create_app
from todo_app.repositories import InMemoryTodoStore

MISSING_ID = "0123456789abcdef01234567"


def create_todo(client, description="Test Task", priority="1"):
    res = client.post(
        "/todos",
        data={"description": description, "priority": priority},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert res.headers["location"] == "/todos"
    return res


def list_todos(client, **params):
    res = client.get("/todos", params=params)
    assert res.status_code == 200
    assert res.template.name == "todos/index.html"
    return res.context["todos"]


def only_todo(client):
    todos = list_todos(client)
    assert len(todos) == 1
    return todos[0]


def set_completed(store, todo_id, value=True):
    store._docs[ObjectId(todo_id)]["completed"] = value


class TestHome:
    def test_home_redirects_to_list(self, client):
        res = client.get("/", follow_redirects=False)
        assert res.status_code == 302
        assert res.headers["location"] == "/todos"

    def test_new_form_renders_without_data(self, client):
        res = client.get("/todos/new")
        assert res.status_code == 200
        assert res.template.name == "todos/new.html"
        assert 'name="description"' in res.text


class TestCreateAndList:
    def test_create_then_list_end_to_end(self, client):
        res = client.post("/todos", data={"description": "buy milk", "priority": "3"})
        # Redirect was followed back to the list
        assert res.status_code == 200
        assert res.url.path == "/todos"
        todo = res.context["todos"][0]
        assert todo["description"] == "buy milk"
        assert todo["priority"] == 3
        assert todo["completed"] is False
        assert len(todo["id"]) == 24
        assert "buy milk" in res.text

    def test_list_empty(self, client):
        assert list_todos(client) == []
        assert "No todos." in client.get("/todos").text

    def test_create_negative_priority(self, client):
        create_todo(client, "someday", "-5")
        assert only_todo(client)["priority"] == -5

    def test_create_rejects_non_numeric_priority(self, client):
        res = client.post("/todos", data={"description": "x", "priority": "high"})
        assert res.status_code == 400
        assert res.headers["content-type"].startswith("text/plain")
        assert "priority" in res.text
        assert list_todos(client) == []

    def test_create_rejects_priority_beyond_int64(self, client):
        res = client.post("/todos", data={"description": "x", "priority": "99999999999999999999"})
        assert res.status_code == 400
        assert res.headers["content-type"].startswith("text/plain")
        assert "priority" in res.text
        assert list_todos(client) == []

    def test_create_rejects_missing_description(self, client):
        res = client.post("/todos", data={"priority": "1"})
        assert res.status_code == 400
        assert "description" in res.text

    def test_create_rejects_blank_description(self, client):
        res = client.post("/todos", data={"description": "   ", "priority": "1"})
        assert res.status_code == 400


class TestSearch:
    def seed(self, client):
        for desc in ["buy milk", "buy bread", "walk the dog", "Milkshake"]:
            create_todo(client, desc)

    def test_search_returns_substring_matches(self, client):
        self.seed(client)
        found = {t["description"] for t in list_todos(client, query="buy")}
        assert found == {"buy milk", "buy bread"}

    def test_search_is_case_sensitive(self, client):
        self.seed(client)
        found = {t["description"] for t in list_todos(client, query="milk")}
        assert found == {"buy milk"}

    def test_search_matches_anywhere(self, client):
        self.seed(client)
        found = {t["description"] for t in list_todos(client, query="the")}
        assert found == {"walk the dog"}

    def test_empty_query_returns_everything(self, client):
        self.seed(client)
        assert len(list_todos(client, query="")) == 4
        assert len(list_todos(client)) == 4

    def test_query_is_echoed_to_view(self, client):
        res = client.get("/todos", params={"query": "dog"})
        assert res.context["query"] == "dog"


class TestEdit:
    def test_edit_form_shows_todo(self, client):
        create_todo(client, "read book", "2")
        todo = only_todo(client)
        res = client.get(f"/todos/{todo['id']}/edit")
        assert res.status_code == 200
        assert res.template.name == "todos/edit.html"
        assert res.context["todo"] == todo

    def test_edit_form_malformed_id_renders_without_todo(self, client):
        res = client.get("/todos/not-an-id/edit")
        assert res.status_code == 200
        assert res.context["todo"] is None

    def test_edit_form_unknown_id_renders_without_todo(self, client):
        res = client.get(f"/todos/{MISSING_ID}/edit")
        assert res.status_code == 200
        assert res.context["todo"] is None
        assert "could not be found" in res.text


class TestUpdate:
    def test_update_preserves_completed_and_id(self, client, store):
        create_todo(client, "initial", "1")
        tid = only_todo(client)["id"]
        set_completed(store, tid)

        res = client.put(
            f"/todos/{tid}",
            data={"description": "changed", "priority": "7"},
            follow_redirects=False,
        )
        assert res.status_code == 303
        assert res.headers["location"] == "/todos"

        todo = client.get(f"/todos/{tid}/edit").context["todo"]
        assert todo == {"id": tid, "description": "changed", "priority": 7, "completed": True}

    def test_update_through_method_override_field(self, client):
        create_todo(client, "initial", "1")
        tid = only_todo(client)["id"]
        res = client.post(
            f"/todos/{tid}",
            data={"_method": "PUT", "description": "via form", "priority": "2"},
        )
        assert res.status_code == 200
        todo = only_todo(client)
        assert todo["description"] == "via form"
        assert todo["priority"] == 2

    def test_update_through_method_override_header(self, client):
        create_todo(client, "initial", "1")
        tid = only_todo(client)["id"]
        res = client.post(
            f"/todos/{tid}",
            data={"description": "via header", "priority": "4"},
            headers={"X-HTTP-Method-Override": "PUT"},
            follow_redirects=False,
        )
        assert res.status_code == 303
        assert only_todo(client)["description"] == "via header"

    def test_update_invalid_priority(self, client):
        create_todo(client, "initial", "1")
        tid = only_todo(client)["id"]
        res = client.put(f"/todos/{tid}", data={"description": "x", "priority": "NaN"})
        assert res.status_code == 400
        assert only_todo(client)["description"] == "initial"

    def test_update_rejects_priority_beyond_int64(self, client):
        create_todo(client, "initial", "1")
        tid = only_todo(client)["id"]
        res = client.put(f"/todos/{tid}", data={"description": "x", "priority": "-99999999999999999999"})
        assert res.status_code == 400
        assert "priority" in res.text
        assert only_todo(client)["priority"] == 1

    def test_update_malformed_id(self, client):
        res = client.put("/todos/nope", data={"description": "x", "priority": "1"})
        assert res.status_code == 400
        assert "Invalid todo id" in res.text

    def test_update_unknown_id_is_not_found(self, client):
        res = client.put(f"/todos/{MISSING_ID}", data={"description": "x", "priority": "1"})
        assert res.status_code == 404
        assert res.text == f"Todo {MISSING_ID} not found"


class TestDelete:
    def test_delete_removes_todo(self, client):
        create_todo(client, "keep", "1")
        create_todo(client, "drop", "1")
        drop = next(t for t in list_todos(client) if t["description"] == "drop")

        res = client.delete(f"/todos/{drop['id']}", follow_redirects=False)
        assert res.status_code == 303
        assert [t["description"] for t in list_todos(client)] == ["keep"]

    def test_delete_through_method_override(self, client):
        create_todo(client, "drop", "1")
        tid = only_todo(client)["id"]
        res = client.post(f"/todos/{tid}", data={"_method": "DELETE"})
        assert res.status_code == 200
        assert list_todos(client) == []

    def test_delete_absent_id_succeeds(self, client):
        res = client.delete(f"/todos/{MISSING_ID}", follow_redirects=False)
        assert res.status_code == 303

    def test_delete_then_update_is_not_found(self, client):
        create_todo(client, "short lived", "1")
        tid = only_todo(client)["id"]
        client.delete(f"/todos/{tid}")
        res = client.put(f"/todos/{tid}", data={"description": "again", "priority": "1"})
        assert res.status_code == 404
        assert list_todos(client) == []

    def test_delete_malformed_id(self, client):
        res = client.delete("/todos/xyz")
        assert res.status_code == 400


class FailingStore(InMemoryTodoStore):
    def __init__(self, fail_on_connect=False, fail_on_close=False):
        super().__init__()
        self.fail_on_connect = fail_on_connect
        self.fail_on_close = fail_on_close
        self.close_calls = 0

    async def connect(self):
        if self.fail_on_connect:
            raise StoreError("connection refused")
        await super().connect()

    async def close(self):
        self.close_calls += 1
        await super().close()
        if self.fail_on_close:
            raise StoreError("close failed")

    async def search(self, query=None):
        raise StoreError("cursor killed")

    async def create(self, description, priority):
        raise StoreError("insert failed")

    async def update(self, todo_id, description, priority):
        raise StoreError("update failed")

    async def delete(self, todo_id):
        raise StoreError("delete failed")


class TestLifecycleAndErrors:
    def test_store_error_is_reported_as_plain_text(self):
        with TestClient(create_app(store=FailingStore())) as client:
            res = client.get("/todos")
        assert res.status_code == 500
        assert res.headers["content-type"].startswith("text/plain")
        assert res.text == "Something exploded! Error: cursor killed"

    @pytest.mark.parametrize(
        "method, path, data, detail",
        [
            ("POST", "/todos", {"description": "x", "priority": "1"}, "insert failed"),
            ("PUT", f"/todos/{MISSING_ID}", {"description": "x", "priority": "1"}, "update failed"),
            ("DELETE", f"/todos/{MISSING_ID}", None, "delete failed"),
        ],
    )
    def test_write_store_errors_are_reported_as_plain_text(self, method, path, data, detail):
        with TestClient(create_app(store=FailingStore())) as client:
            res = client.request(method, path, data=data, follow_redirects=False)
        assert res.status_code == 500
        assert res.headers["content-type"].startswith("text/plain")
        assert res.text == f"Something exploded! Error: {detail}"

    def test_requests_before_connect_are_not_ready(self):
        # Without entering the client the lifespan never connects the store
        client = TestClient(create_app(store=InMemoryTodoStore()))
        res = client.get("/todos")
        assert res.status_code == 503
        assert "not connected" in res.text

    def test_new_form_does_not_need_the_store(self):
        client = TestClient(create_app(store=InMemoryTodoStore()))
        assert client.get("/todos/new").status_code == 200

    def test_failed_connection_aborts_startup(self):
        app = create_app(store=FailingStore(fail_on_connect=True))
        with pytest.raises(StoreError):
            with TestClient(app):
                pass

    def test_store_closed_once_on_shutdown(self):
        store = FailingStore()
        with TestClient(create_app(store=store)):
            assert store.is_connected
        assert store.close_calls == 1
        assert not store.is_connected

    def test_failed_close_does_not_break_shutdown(self):
        store = FailingStore(fail_on_close=True)
        with TestClient(create_app(store=store)):
            pass
        assert store.close_calls == 1

    def test_store_usable_outside_requests(self, client, store):
        create_todo(client, "direct", "1")
        todos = asyncio.run(store.search("dir"))
        assert [t["description"] for t in todos] == ["direct"]
