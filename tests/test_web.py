"""
Tests for the HTTP interface
"""

import pytest
from fastapi.testclient import TestClient
from taskwise.api.document_store import InMemoryDocumentStore
from taskwise.web.main import TaskWiseApp, app, get_app


@pytest.fixture
def services(priority_service):
    return TaskWiseApp(store=InMemoryDocumentStore(), priority_service=priority_service)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_app] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def _sign_up(client, name="Ada", email="ada@taskwise.dev", password="secret1"):
    response = client.post(
        "/api/auth/signup",
        json={"displayName": name, "email": email, "password": password},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def headers(client):
    return _sign_up(client)


def _create_task(client, headers, **fields):
    body = {"title": "Pay rent", "dueDate": "2024-05-01T09:00:00Z", "category": "personal"}
    body.update(fields)
    response = client.post("/api/tasks", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()["task"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_requires_token(client):
    response = client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me(client, headers):
    response = client.get("/api/me", headers=headers)
    assert response.json()["displayName"] == "Ada"


def test_login_wrong_password(client, headers):
    response = client.post("/api/auth/login", json={"email": "ada@taskwise.dev", "password": "nope-nope"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "wrong_password"


def test_duplicate_sign_up(client, headers):
    response = client.post(
        "/api/auth/signup",
        json={"displayName": "Ada", "email": "ada@taskwise.dev", "password": "secret1"},
    )
    assert response.status_code == 409


def test_change_password(client, headers):
    response = client.post(
        "/api/auth/password",
        json={"currentPassword": "secret1", "newPassword": "secret2", "confirmPassword": "secret2"},
        headers=headers,
    )
    assert response.status_code == 200
    login = client.post("/api/auth/login", json={"email": "ada@taskwise.dev", "password": "secret2"})
    assert login.status_code == 200


def test_create_and_list_tasks(client, headers):
    created = client.post(
        "/api/tasks",
        json={"title": "Pay rent", "dueDate": "2024-05-01T09:00:00Z", "category": "personal"},
        headers=headers,
    ).json()

    task = created["task"]
    assert task["isCompleted"] is False
    assert task["timeSpent"] == 0
    assert task["timeEntries"] == []
    assert created["notification"]["title"] == "Task Created"

    _create_task(client, headers, title="Later", dueDate="2024-05-02T09:00:00Z")

    assert len(client.get("/api/tasks", headers=headers).json()) == 2
    day = client.get("/api/tasks", params={"date": "2024-05-01"}, headers=headers).json()
    assert [t["title"] for t in day] == ["Pay rent"]


def test_create_task_without_title(client, headers):
    response = client.post(
        "/api/tasks",
        json={"title": "", "dueDate": "2024-05-01T09:00:00Z"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["field"] == "title"


def test_update_toggle_reschedule_delete(client, headers):
    task = _create_task(client, headers)
    url = f"/api/tasks/{task['id']}"

    updated = client.patch(url, json={"priority": "high"}, headers=headers).json()["task"]
    assert updated["priority"] == "high"
    assert updated["title"] == "Pay rent"

    toggled = client.post(f"{url}/toggle", headers=headers).json()
    assert toggled["isCompleted"] is True

    moved = client.post(f"{url}/reschedule", json={"date": "2024-05-03"}, headers=headers).json()
    assert moved["dueDate"].startswith("2024-05-03T09:00:00")

    deleted = client.delete(url, headers=headers).json()
    assert deleted["notification"]["title"] == "Task Deleted"
    assert client.get(url, headers=headers).status_code == 404


def test_other_users_task_is_forbidden(client, headers):
    task = _create_task(client, headers)
    other = _sign_up(client, name="Bob", email="bob@taskwise.dev")

    response = client.get(f"/api/tasks/{task['id']}", headers=other)

    assert response.status_code == 403
    assert response.json()["message"] == "You don't have permission to perform this action."


def test_time_entries(client, headers):
    task = _create_task(client, headers)
    url = f"/api/tasks/{task['id']}/entries"

    with_entry = client.post(
        url,
        json={"startTime": "2024-05-01T09:00:00Z", "endTime": "2024-05-01T09:30:00Z"},
        headers=headers,
    ).json()
    entry_id = with_entry["timeEntries"][0]["id"]
    assert with_entry["timeSpent"] == 1800

    rejected = client.patch(
        f"{url}/{entry_id}",
        json={"startTime": "2024-05-01T10:00:00Z"},
        headers=headers,
    )
    assert rejected.status_code == 400
    unchanged = client.get(f"/api/tasks/{task['id']}", headers=headers).json()
    assert unchanged["timeSpent"] == 1800
    assert unchanged["timeLog"][0]["id"] == entry_id

    edited = client.patch(
        f"{url}/{entry_id}",
        json={"endTime": "2024-05-01T09:10:00Z"},
        headers=headers,
    ).json()
    assert edited["timeEntries"][0]["id"] == entry_id
    assert edited["timeSpent"] == 600

    emptied = client.delete(f"{url}/{entry_id}", headers=headers).json()
    assert emptied["timeEntries"] == []
    assert emptied["timeSpent"] == 0


def test_timer(client, headers):
    first = _create_task(client, headers, title="First")
    second = _create_task(client, headers, title="Second")

    started = client.post("/api/timer/start", json={"taskId": first["id"]}, headers=headers).json()
    assert started["success"] is True
    assert started["timer"]["taskId"] == first["id"]

    refused = client.post("/api/timer/start", json={"taskId": second["id"]}, headers=headers).json()
    assert refused["success"] is False
    assert refused["notification"]["title"] == "Another Timer Active"

    stopped = client.post("/api/timer/stop", json={"taskId": first["id"]}, headers=headers).json()
    assert stopped["success"] is True
    assert stopped["timer"]["status"] == "idle"

    task = client.get(f"/api/tasks/{first['id']}", headers=headers).json()
    assert len(task["timeEntries"]) == 1
    assert task["timeSpent"] == task["timeEntries"][0]["duration"]


def test_reorder(client, headers):
    a = _create_task(client, headers, title="A")
    b = _create_task(client, headers, title="B")

    response = client.post("/api/tasks/reorder", json={"taskIds": [b["id"], a["id"]]}, headers=headers)

    assert response.json() == {"success": True, "updated": 2}
    titles = [t["title"] for t in client.get("/api/tasks", headers=headers).json()]
    assert titles == ["B", "A"]


def test_overview(client, headers):
    task = _create_task(client, headers)
    client.post(
        f"/api/tasks/{task['id']}/entries",
        json={"startTime": "2024-05-01T09:00:00Z", "endTime": "2024-05-01T10:00:00Z"},
        headers=headers,
    )

    weekly = client.get("/api/overview", params={"view": "weekly", "date": "2024-05-01"}, headers=headers).json()

    assert [b["total"] for b in weekly["buckets"]] == [0, 0, 3600, 0, 0, 0, 0]
    assert weekly["progress"]["total_tasks"] == 1

    bad = client.get("/api/overview", params={"view": "yearly"}, headers=headers)
    assert bad.status_code == 400


def test_suggest_priority(client, headers):
    response = client.post(
        "/api/suggest-priority",
        json={"title": "Pay rent", "dueDate": "2024-05-01T09:00:00Z", "priority": "low"},
        headers=headers,
    ).json()

    assert response["success"] is True
    assert response["form"]["priority"] == "high"
    assert response["suggestion"]["reason"] == "The deadline is tomorrow."


def test_suggest_priority_failure_keeps_form(client, headers, mock_openai_client):
    mock_openai_client.complete_json.side_effect = RuntimeError("down")

    response = client.post(
        "/api/suggest-priority",
        json={"title": "Pay rent", "dueDate": "2024-05-01T09:00:00Z", "priority": "low"},
        headers=headers,
    ).json()

    assert response["success"] is False
    assert response["form"]["priority"] == "low"
    assert response["notification"]["title"] == "AI Suggestion Failed"


def test_task_detail_labels(client, headers):
    task = _create_task(client, headers, dueDate="2024-05-01T09:00:00Z")
    client.post(
        f"/api/tasks/{task['id']}/entries",
        json={"startTime": "2024-05-01T09:00:00Z", "endTime": "2024-05-01T10:05:03Z"},
        headers=headers,
    )

    detail = client.get(f"/api/tasks/{task['id']}", headers=headers).json()

    assert detail["dueLabel"] == "May 1"
    assert detail["isOverdue"] is True
    assert detail["timeSpentLabel"] == "1h 5m"
    assert detail["timeLog"][0]["durationLabel"] == "1h 5m 3s"


def test_calendar(client, headers):
    _create_task(client, headers, title="Open", dueDate="2024-05-01T09:00:00Z")
    done = _create_task(client, headers, title="Done", dueDate="2024-05-02T09:00:00Z")
    client.post(f"/api/tasks/{done['id']}/toggle", json={"isCompleted": True}, headers=headers)

    calendar = client.get("/api/calendar", headers=headers).json()

    assert calendar["taskDays"] == ["2024-05-01"]
    assert calendar["completedTaskDays"] == ["2024-05-02"]
    assert calendar["notification"] is None


def test_logins_do_not_share_a_signed_in_user(client, services, headers):
    other = _sign_up(client, name="Bob", email="bob@taskwise.dev")
    client.post("/api/auth/login", json={"email": "bob@taskwise.dev", "password": "secret1"})
    assert services.auth.current_user is None

    assert client.post("/api/auth/logout", headers=other).json() == {"success": True}

    assert client.get("/api/me", headers=headers).json()["displayName"] == "Ada"
    assert services.auth.current_user is None
