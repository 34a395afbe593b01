from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from src.api.errors import StoreError
from src.api.main import create_app
from src.api.repositories import InMemoryStore
from src.api.tokens import TokenService

from .helpers import SECRET, FakeClock, bearer, signup

PROTECTED = [
    ("POST", "/add-task", {"title": "x"}),
    ("GET", "/tasks", None),
    ("GET", "/task/507f1f77bcf86cd799439011", None),
    ("PUT", "/update-task", {"_id": "507f1f77bcf86cd799439011", "title": "y"}),
    ("DELETE", "/delete/507f1f77bcf86cd799439011", None),
    ("DELETE", "/delete-multiple", ["507f1f77bcf86cd799439011"]),
]


@pytest.fixture()
def authed(client):
    """Client holding a session cookie for a@x.com."""
    signup(client)
    return client


def add_task(client: TestClient, **fields) -> str:
    res = client.post("/add-task", json=fields)
    assert res.status_code == 200, res.text
    return res.json()["result"]["inserted_id"]


class TestAuthGateOnRoutes:
    @pytest.mark.parametrize("method,path,body", PROTECTED)
    def test_no_token_is_rejected(self, client, method, path, body):
        res = client.request(method, path, json=body)
        assert res.status_code == 401
        assert res.json() == {"success": False, "msg": "No token provided"}

    @pytest.mark.parametrize("method,path,body", PROTECTED)
    def test_invalid_token_is_rejected(self, client, method, path, body):
        res = client.request(method, path, json=body, headers=bearer("not-a-token"))
        assert res.status_code == 401
        assert res.json() == {"success": False, "msg": "Invalid Token"}

    def test_rejected_request_never_reaches_the_store(self, client, store):
        res = client.post("/add-task", json={"title": "x"})
        assert res.status_code == 401
        assert store.list_tasks() == []

    def test_expired_token_is_rejected(self, client):
        issued = datetime.now(timezone.utc) - timedelta(days=5, seconds=1)
        stale = TokenService(SECRET, clock=FakeClock(issued)).issue("a@x.com")
        res = client.get("/tasks", headers=bearer(stale))
        assert res.status_code == 401
        assert res.json()["msg"] == "Invalid Token"

    def test_bearer_header_alone_is_accepted(self, client):
        token = signup(client)
        client.cookies.clear()
        res = client.get("/tasks", headers=bearer(token))
        assert res.status_code == 200

    def test_cookie_wins_over_bad_header(self, authed):
        res = authed.get("/tasks", headers=bearer("garbage"))
        assert res.status_code == 200

    def test_bad_cookie_is_not_rescued_by_header(self, client):
        token = signup(client)
        client.cookies.clear()
        client.cookies.set("token", "garbage")
        res = client.get("/tasks", headers=bearer(token))
        assert res.status_code == 401

    def test_gate_runs_once_per_request(self, app, authed, monkeypatch):
        gate = app.state.auth_gate
        seen = []
        original = gate.authorize

        def counting(cookies, headers):
            context = original(cookies, headers)
            seen.append(context.email)
            return context

        monkeypatch.setattr(gate, "authorize", counting)
        res = authed.post("/add-task", json={"title": "x"})
        assert res.status_code == 200
        assert seen == ["a@x.com"]

    def test_token_signed_elsewhere_is_rejected(self, client):
        forged = TokenService("attacker-secret-0123456789abcdefghij").issue("a@x.com")
        res = client.get("/tasks", headers=bearer(forged))
        assert res.status_code == 401


class TestTaskCRUD:
    def test_add_and_get(self, authed):
        res = authed.post("/add-task", json={"title": "x", "done": False})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        task_id = body["result"]["inserted_id"]

        res_get = authed.get(f"/task/{task_id}")
        assert res_get.status_code == 200
        assert res_get.json()["result"] == {"_id": task_id, "title": "x", "done": False}

    def test_add_requires_object_body(self, authed):
        res = authed.post("/add-task", json=["not", "an", "object"])
        assert res.status_code == 400
        assert res.json()["msg"] == "Request validation failed"

    def test_list(self, authed):
        first = add_task(authed, title="a")
        second = add_task(authed, title="b")
        res = authed.get("/tasks")
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert [t["_id"] for t in body["result"]] == [first, second]

    def test_get_unknown(self, authed):
        res = authed.get("/task/507f1f77bcf86cd799439011")
        assert res.status_code == 404
        assert res.json() == {"success": False, "msg": "Task not found"}

    def test_update_merges_fields(self, authed):
        task_id = add_task(authed, title="x", done=False, note="keep me")
        res = authed.put("/update-task", json={"_id": task_id, "done": True})
        assert res.status_code == 200
        assert res.json()["result"] == {"_id": task_id, "title": "x", "done": True, "note": "keep me"}

    def test_update_requires_id(self, authed):
        res = authed.put("/update-task", json={"title": "y"})
        assert res.status_code == 400
        assert res.json() == {"success": False, "msg": "_id is required"}

    def test_update_requires_fields(self, authed):
        task_id = add_task(authed, title="x")
        res = authed.put("/update-task", json={"_id": task_id})
        assert res.status_code == 400
        assert res.json()["msg"] == "No fields to update"

    def test_update_unknown(self, authed):
        res = authed.put("/update-task", json={"_id": "507f1f77bcf86cd799439011", "title": "y"})
        assert res.status_code == 404

    def test_delete(self, authed):
        task_id = add_task(authed, title="x")
        res = authed.delete(f"/delete/{task_id}")
        assert res.status_code == 200
        assert res.json()["result"] == {"deleted_count": 1}

        res_again = authed.delete(f"/delete/{task_id}")
        assert res_again.status_code == 404
        assert res_again.json()["msg"] == "Task not found"

    def test_delete_multiple_counts_existing_only(self, authed):
        a = add_task(authed, title="a")
        b = add_task(authed, title="b")
        authed.delete(f"/delete/{b}")

        res = authed.request("DELETE", "/delete-multiple", json=[a, b])
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["result"] == {"deleted_count": 1}
        assert authed.get("/tasks").json()["result"] == []

    def test_delete_multiple_nothing_deleted(self, authed):
        res = authed.request("DELETE", "/delete-multiple", json=["507f1f77bcf86cd799439011"])
        assert res.status_code == 200
        assert res.json() == {"success": False, "msg": "No tasks deleted", "result": {"deleted_count": 0}}

    def test_delete_multiple_empty(self, authed):
        res = authed.request("DELETE", "/delete-multiple", json=[])
        assert res.status_code == 400
        assert res.json() == {"success": False, "msg": "No ids provided"}

    def test_delete_multiple_requires_array(self, authed):
        res = authed.request("DELETE", "/delete-multiple", json={"ids": ["a"]})
        assert res.status_code == 400


def test_signup_login_add_list_delete_scenario(client):
    res = client.post("/signup", json={"email": "a@x.com", "password": "p1"})
    assert res.status_code == 200 and res.json()["token"]

    client.cookies.clear()
    res = client.post("/login", json={"email": "a@x.com", "password": "p1"})
    assert res.status_code == 200
    token = res.json()["token"]
    client.cookies.clear()

    res = client.post("/add-task", json={"title": "x"}, headers=bearer(token))
    assert res.status_code == 200
    task_id = res.json()["result"]["inserted_id"]

    res = client.get("/tasks", headers=bearer(token))
    assert res.status_code == 200
    assert {"_id": task_id, "title": "x"} in res.json()["result"]

    res = client.delete(f"/delete/{task_id}", headers=bearer(token))
    assert res.status_code == 200

    res = client.get("/tasks", headers=bearer(token))
    assert all(t["_id"] != task_id for t in res.json()["result"])


class FailingStore(InMemoryStore):
    def list_tasks(self):
        try:
            raise PyMongoError("connection reset by peer")
        except PyMongoError as e:
            raise StoreError() from e

    def get_task(self, task_id):
        raise RuntimeError("unexpected bug")


class TestServerErrors:
    def test_store_error_is_generic_500(self, settings):
        app = create_app(settings=settings, store=FailingStore())
        with TestClient(app) as client:
            signup(client)
            res = client.get("/tasks")
        assert res.status_code == 500
        assert res.json() == {"success": False, "msg": "Error Try after some time"}
        assert "connection reset" not in res.text

    def test_unexpected_error_is_generic_500(self, settings):
        app = create_app(settings=settings, store=FailingStore())
        with TestClient(app, raise_server_exceptions=False) as client:
            signup(client)
            res = client.get("/task/507f1f77bcf86cd799439011")
        assert res.status_code == 500
        assert res.json() == {"success": False, "msg": "Server error"}
        assert "unexpected bug" not in res.text


class TestRoutingErrors:
    def test_wrong_method_uses_error_envelope(self, authed):
        res = authed.get("/add-task")
        assert res.status_code == 405
        assert res.json() == {"success": False, "msg": "Method Not Allowed"}
        assert "POST" in res.headers["allow"]

    def test_unknown_path_uses_error_envelope(self, authed):
        res = authed.get("/nope")
        assert res.status_code == 404
        assert res.json() == {"success": False, "msg": "Not Found"}
