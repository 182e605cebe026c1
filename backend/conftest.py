"""
Shared fixtures for backend tests.

Each test gets its own SQLite file and owner allow-list; the app lifespan
(init_db + owner directory) runs inside the TestClient context.
"""

import json
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from backend import config
from backend.main import app

TEST_OWNERS = [
    {"username": "alice", "password": "alice-pass"},
    {"username": "bob", "password": "bob-pass"},
]


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Test client bound to an isolated database and owner allow-list."""
    owners_file = tmp_path / "owners.json"
    owners_file.write_text(json.dumps(TEST_OWNERS))

    monkeypatch.setattr(config, "DATABASE_PATH", str(tmp_path / "test_project_tracker.db"))
    monkeypatch.setattr(config, "OWNERS_FILE", str(owners_file))
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)

    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login_owner(client: TestClient, username: str = "alice") -> Dict:
    password = next(o["password"] for o in TEST_OWNERS if o["username"] == username)
    resp = client.post("/auth/login", json={"type": "owner", "username": username, "password": password})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return {"id": data["user"]["id"], "headers": auth_headers(data["token"]), "user": data["user"]}


def developer_payload(name: str, email: str, **overrides) -> Dict:
    payload = {
        "name": name,
        "email": email,
        "school": "State University",
        "grade": "Junior",
        "hoursPerWeek": 15,
        "resume": f"{name} builds web apps.",
        "password": f"{name.lower()}-pass",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def owner(client) -> Dict:
    """Logged-in owner 'alice'."""
    return login_owner(client, "alice")


@pytest.fixture
def other_owner(client) -> Dict:
    """Logged-in owner 'bob'."""
    return login_owner(client, "bob")


@pytest.fixture
def make_developer(client) -> Callable[..., Dict]:
    """Factory: register + log in a developer, returns {id, headers, user}."""
    def _make(name: str = "Dana", email: str = None) -> Dict:
        email = email or f"{name.lower()}@example.com"
        payload = developer_payload(name, email)
        resp = client.post("/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        resp = client.post(
            "/auth/login",
            json={"type": "developer", "email": email, "password": payload["password"]},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        return {"id": data["user"]["id"], "headers": auth_headers(data["token"]), "user": data["user"]}

    return _make


@pytest.fixture
def make_project(client, owner) -> Callable[..., Dict]:
    """Factory: create a project as 'alice' (or the given owner)."""
    def _make(name: str = "Alpha", as_owner: Dict = None, **fields) -> Dict:
        body = {
            "name": name,
            "description": f"{name} project",
            "startDate": "2024-01-01",
            "endDate": "2024-03-01",
        }
        body.update(fields)
        resp = client.post("/projects", json=body, headers=(as_owner or owner)["headers"])
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
