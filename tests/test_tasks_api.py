import time

import pytest
from fastapi.testclient import TestClient

from task_tracker.api.db import SQLRepository, tasks_table
from task_tracker.api.errors import StorageError
from task_tracker.api.main import create_app

from .conftest import make_settings
from .fakes import FailingRepository

NOT_FOUND = "Task not found or does not belong to this user."


def create_task(client: TestClient, text="Buy milk", user_id="u1"):
    res = client.post("/api/tasks", json={"text": text, "userId": user_id})
    assert res.status_code == 201, res.text
    return res.json()


def list_tasks(client: TestClient, user_id="u1"):
    res = client.get("/api/tasks", params={"userId": user_id})
    assert res.status_code == 200, res.text
    return res.json()


def delete_task(client: TestClient, task_id, body):
    # httpx's delete() takes no body, so go through request()
    return client.request("DELETE", f"/api/tasks/{task_id}", json=body)


def assert_task_shape(task: dict):
    assert set(task) == {"id", "text", "completed", "userId", "createdAt"}
    assert isinstance(task["id"], int)
    assert isinstance(task["text"], str)
    assert isinstance(task["completed"], bool)
    assert isinstance(task["userId"], str)
    assert isinstance(task["createdAt"], int)


class TestHealth:
    def test_health_check(self, client, backend):
        res = client.get("/")
        assert res.status_code == 200
        assert res.json() == {"message": "Healthy", "backend": backend}


class TestTasksCRUD:
    def test_create_returns_full_record(self, client):
        before = int(time.time() * 1000)
        task = create_task(client, "Buy milk", "u1")
        assert_task_shape(task)
        assert task["text"] == "Buy milk"
        assert task["completed"] is False
        assert task["userId"] == "u1"
        assert task["createdAt"] >= before

    def test_create_then_list_contains_exactly_one_new_task(self, client):
        before = int(time.time() * 1000)
        created = create_task(client, "Walk dog", "u1")
        tasks = list_tasks(client, "u1")
        matching = [t for t in tasks if t["id"] == created["id"]]
        assert len(matching) == 1
        assert matching[0]["text"] == "Walk dog"
        assert matching[0]["completed"] is False
        assert matching[0]["createdAt"] >= before

    def test_create_trims_text(self, client):
        task = create_task(client, "  padded  ", "u1")
        assert task["text"] == "padded"

    def test_ids_are_unique_and_increasing_across_users(self, client):
        a = create_task(client, "a", "u1")
        b = create_task(client, "b", "u2")
        c = create_task(client, "c", "u1")
        assert a["id"] < b["id"] < c["id"]

    def test_update_completion(self, client):
        first = create_task(client, "first", "u1")
        second = create_task(client, "second", "u1")

        res = client.put(f"/api/tasks/{first['id']}", json={"completed": True, "userId": "u1"})
        assert res.status_code == 200
        assert res.json() == {"message": "Task updated successfully", "id": first["id"], "completed": True}

        by_id = {t["id"]: t for t in list_tasks(client, "u1")}
        assert by_id[first["id"]]["completed"] is True
        assert by_id[second["id"]]["completed"] is False
        # text and createdAt never change
        assert by_id[first["id"]]["text"] == "first"
        assert by_id[first["id"]]["createdAt"] == first["createdAt"]

    def test_update_can_reopen_task(self, client):
        task = create_task(client)
        client.put(f"/api/tasks/{task['id']}", json={"completed": True, "userId": "u1"})
        res = client.put(f"/api/tasks/{task['id']}", json={"completed": False, "userId": "u1"})
        assert res.status_code == 200
        assert list_tasks(client)[0]["completed"] is False

    def test_delete_task(self, client):
        keep = create_task(client, "keep", "u1")
        gone = create_task(client, "gone", "u1")

        res = delete_task(client, gone["id"], {"userId": "u1"})
        assert res.status_code == 200
        assert res.json() == {"message": "Task deleted successfully", "id": gone["id"]}
        assert [t["id"] for t in list_tasks(client, "u1")] == [keep["id"]]

        # Deleting again is reported as missing
        again = delete_task(client, gone["id"], {"userId": "u1"})
        assert again.status_code == 404
        assert again.json() == {"message": NOT_FOUND}

    def test_end_to_end_scenario(self, client):
        res = client.post("/api/tasks", json={"text": "buy milk", "userId": "u1"})
        assert res.status_code == 201
        task = res.json()
        assert task["completed"] is False

        assert [t["id"] for t in list_tasks(client, "u1")] == [task["id"]]

        res = client.put(f"/api/tasks/{task['id']}", json={"completed": True, "userId": "u1"})
        assert res.status_code == 200
        assert list_tasks(client, "u1")[0]["completed"] is True

        res = delete_task(client, task["id"], {"userId": "u1"})
        assert res.status_code == 200
        assert list_tasks(client, "u1") == []


class TestOwnership:
    def test_list_never_returns_other_users_tasks(self, client):
        create_task(client, "mine", "u1")
        create_task(client, "theirs", "u2")
        assert [t["text"] for t in list_tasks(client, "u1")] == ["mine"]
        assert [t["text"] for t in list_tasks(client, "u2")] == ["theirs"]
        assert list_tasks(client, "nobody") == []

    def test_update_by_other_user_is_not_found(self, client):
        task = create_task(client, "mine", "u1")
        res = client.put(f"/api/tasks/{task['id']}", json={"completed": True, "userId": "intruder"})
        assert res.status_code == 404
        assert res.json() == {"message": NOT_FOUND}
        assert list_tasks(client, "u1")[0]["completed"] is False

    def test_not_owned_and_missing_look_identical(self, client):
        task = create_task(client, "mine", "u1")
        not_owned = client.put(f"/api/tasks/{task['id']}", json={"completed": True, "userId": "u2"})
        missing = client.put("/api/tasks/999999", json={"completed": True, "userId": "u2"})
        assert not_owned.status_code == missing.status_code == 404
        assert not_owned.json() == missing.json()

    @pytest.mark.parametrize("task_id", [99999999999999999999999, 0, -1])
    def test_unaddressable_id_is_not_found(self, client, task_id):
        create_task(client, "mine", "u1")
        res = client.put(f"/api/tasks/{task_id}", json={"completed": True, "userId": "u1"})
        assert res.status_code == 404
        assert res.json() == {"message": NOT_FOUND}
        res = delete_task(client, task_id, {"userId": "u1"})
        assert res.status_code == 404
        assert res.json() == {"message": NOT_FOUND}
        assert len(list_tasks(client, "u1")) == 1

    def test_delete_by_other_user_is_not_found(self, client):
        task = create_task(client, "mine", "u1")
        res = delete_task(client, task["id"], {"userId": "u2"})
        assert res.status_code == 404
        assert len(list_tasks(client, "u1")) == 1

    def test_list_order_follows_creation_per_user(self, client):
        a = create_task(client, "a", "u1")
        create_task(client, "x", "u2")
        b = create_task(client, "b", "u1")
        create_task(client, "y", "u2")
        c = create_task(client, "c", "u1")
        tasks = list_tasks(client, "u1")
        assert [t["id"] for t in tasks] == [a["id"], b["id"], c["id"]]
        created = [t["createdAt"] for t in tasks]
        assert created == sorted(created)


class TestIdentity:
    def test_header_identifies_user_for_list_and_create(self, client):
        res = client.post("/api/tasks", json={"text": "via header"}, headers={"X-User-Id": "h1"})
        assert res.status_code == 201
        assert res.json()["userId"] == "h1"

        res = client.get("/api/tasks", headers={"X-User-Id": "h1"})
        assert [t["text"] for t in res.json()] == ["via header"]

    def test_header_takes_precedence_over_payload(self, client):
        res = client.post(
            "/api/tasks", json={"text": "both", "userId": "body-id"}, headers={"X-User-Id": "header-id"}
        )
        assert res.json()["userId"] == "header-id"

    def test_request_without_identity_gets_ephemeral_user(self, client):
        res = client.post("/api/tasks", json={"text": "orphan"})
        assert res.status_code == 201
        generated = res.json()["userId"]
        assert generated

        # A second anonymous request is a different user and sees nothing
        res = client.get("/api/tasks")
        assert res.status_code == 200
        assert res.json() == []

        # The generated id still owns the row
        assert [t["text"] for t in list_tasks(client, generated)] == ["orphan"]

    def test_blank_query_user_id_is_ignored(self, client):
        create_task(client, "mine", "u1")
        res = client.get("/api/tasks", params={"userId": "   "})
        assert res.status_code == 200
        assert res.json() == []

    def test_update_ignores_header_identity(self, client):
        task = create_task(client, "mine", "u1")
        res = client.put(f"/api/tasks/{task['id']}", json={"completed": True}, headers={"X-User-Id": "u1"})
        assert res.status_code == 400
        assert res.json()["message"] == "User ID is required for updating tasks."

    def test_delete_ignores_header_identity(self, client):
        task = create_task(client, "mine", "u1")
        res = delete_task(client, task["id"], {})
        assert res.status_code == 400
        assert res.json()["message"] == "User ID is required for deleting tasks."
        res = client.request("DELETE", f"/api/tasks/{task['id']}", headers={"X-User-Id": "u1"})
        assert res.status_code == 400
        assert len(list_tasks(client, "u1")) == 1


class TestValidationErrors:
    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_create_rejects_blank_text(self, client, text):
        create_task(client, "existing", "u1")
        res = client.post("/api/tasks", json={"text": text, "userId": "u1"})
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "ValidationError"
        assert "Task text cannot be empty." in body["message"]
        assert isinstance(body["detail"], list)
        assert len(list_tasks(client, "u1")) == 1

    def test_create_requires_text(self, client):
        res = client.post("/api/tasks", json={"userId": "u1"})
        assert res.status_code == 400
        assert res.json()["error"] == "ValidationError"
        assert list_tasks(client, "u1") == []

    @pytest.mark.parametrize("completed", ["true", 1, 0, None, "yes"])
    def test_update_requires_real_boolean(self, client, completed):
        task = create_task(client)
        res = client.put(f"/api/tasks/{task['id']}", json={"completed": completed, "userId": "u1"})
        assert res.status_code == 400
        assert res.json()["error"] == "ValidationError"
        assert list_tasks(client)[0]["completed"] is False

    def test_update_requires_completed(self, client):
        task = create_task(client)
        res = client.put(f"/api/tasks/{task['id']}", json={"userId": "u1"})
        assert res.status_code == 400

    def test_non_integer_task_id(self, client):
        res = client.put("/api/tasks/abc", json={"completed": True, "userId": "u1"})
        assert res.status_code == 400

    def test_delete_without_body(self, client):
        task = create_task(client)
        res = client.request("DELETE", f"/api/tasks/{task['id']}")
        assert res.status_code == 400
        assert res.json() == {"message": "User ID is required for deleting tasks."}

    def test_malformed_json(self, client):
        res = client.post(
            "/api/tasks", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert res.status_code == 400
        assert res.json()["error"] == "ValidationError"

    def test_overlong_user_id_is_rejected(self, client):
        res = client.post("/api/tasks", json={"text": "x", "userId": "u" * 256})
        assert res.status_code == 400
        assert res.json() == {"message": "User ID must be at most 255 characters."}
        assert list_tasks(client, "u" * 255) == []

    def test_user_id_at_column_width_is_accepted(self, client):
        task = create_task(client, "x", "u" * 255)
        assert task["userId"] == "u" * 255
        assert [t["id"] for t in list_tasks(client, "u" * 255)] == [task["id"]]

    def test_undecodable_body(self, client):
        res = client.post(
            "/api/tasks", content=b'{"text": "\xff", "userId": "u1"}', headers={"Content-Type": "application/json"}
        )
        assert res.status_code == 400
        assert set(res.json()) == {"message"}

    def test_unsupported_method(self, client):
        res = client.patch("/api/tasks/1", json={"completed": True})
        assert res.status_code == 405
        assert res.json() == {"message": "Method Not Allowed"}

    def test_unknown_route(self, client):
        res = client.get("/api/nope")
        assert res.status_code == 404
        assert res.json() == {"message": "Not Found"}


class TestStorageErrors:
    @pytest.fixture()
    def broken_client(self):
        app = create_app(make_settings("memory"), repository=FailingRepository("disk I/O error"))
        with TestClient(app) as c:
            yield c

    def test_list_storage_error(self, broken_client):
        res = broken_client.get("/api/tasks", params={"userId": "u1"})
        assert res.status_code == 500
        assert res.json() == {"message": "Failed to fetch tasks", "error": "disk I/O error"}

    def test_create_storage_error(self, broken_client):
        res = broken_client.post("/api/tasks", json={"text": "x", "userId": "u1"})
        assert res.status_code == 500
        assert res.json() == {"message": "Failed to add task", "error": "disk I/O error"}

    def test_update_storage_error(self, broken_client):
        res = broken_client.put("/api/tasks/1", json={"completed": True, "userId": "u1"})
        assert res.status_code == 500
        assert res.json()["message"] == "Failed to update task"

    def test_delete_storage_error(self, broken_client):
        res = delete_task(broken_client, 1, {"userId": "u1"})
        assert res.status_code == 500
        assert res.json()["message"] == "Failed to delete task"

    def test_validation_happens_before_storage(self, broken_client):
        res = broken_client.post("/api/tasks", json={"text": " ", "userId": "u1"})
        assert res.status_code == 400

    def test_real_database_failure_is_reported(self, tmp_path):
        repo = SQLRepository(f"sqlite:///{tmp_path / 'tasks.db'}")
        app = create_app(make_settings("sql"), repository=repo)
        with TestClient(app) as c:
            with repo.engine.begin() as conn:
                tasks_table.drop(conn)
            res = c.get("/api/tasks", params={"userId": "u1"})
        assert res.status_code == 500
        body = res.json()
        assert body["message"] == "Failed to fetch tasks"
        assert "no such table" in body["error"]

    def test_startup_fails_when_store_unreachable(self):
        app = create_app(
            make_settings("sql"), repository=FailingRepository("connection refused", fail_on_startup=True)
        )
        with pytest.raises(StorageError, match="connection refused"):
            with TestClient(app):
                pass
