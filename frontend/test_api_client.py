# frontend/test_api_client.py
# Unit tests for API client helpers and base URL configuration

import json

import pytest
import requests

from frontend import api_client
from frontend.config import get_api_base_url


def make_response(status_code, body):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return resp


def test_public_endpoints():
    assert api_client.is_public_endpoint("/auth/login")
    assert api_client.is_public_endpoint("/auth/register")
    assert not api_client.is_public_endpoint("/projects")
    assert not api_client.is_public_endpoint("/developers/profile")


def test_error_detail_reads_backend_message():
    resp = make_response(403, {"detail": "Access denied. You are not assigned to this project."})
    assert api_client.error_detail(resp) == "Access denied. You are not assigned to this project."


def test_error_detail_falls_back():
    assert api_client.error_detail(make_response(500, b"<html>oops</html>"), "fallback") == "fallback"
    assert api_client.error_detail(None, "fallback") == "fallback"


def test_result_success_and_failure():
    assert api_client._result(make_response(201, {"id": "p1"})) == (True, {"id": "p1"})
    assert api_client._result(make_response(400, {"detail": "No valid updates provided"})) == (
        False, "No valid updates provided"
    )
    ok, message = api_client._result(None)
    assert not ok and message


def test_login_builds_owner_and_developer_bodies(monkeypatch):
    calls = []

    def fake_request(method, path, json=None, **kwargs):
        calls.append((method, path, json))
        return make_response(200, {"token": "t", "user": {}})

    monkeypatch.setattr(api_client, "api_request", fake_request)

    api_client.login("pw", username="alice")
    api_client.login("pw", email="dana@example.com")

    assert calls[0] == ("POST", "/auth/login", {"password": "pw", "type": "owner", "username": "alice"})
    assert calls[1] == ("POST", "/auth/login", {"password": "pw", "type": "developer", "email": "dana@example.com"})


def test_local_default_base_url(monkeypatch):
    monkeypatch.delenv("BACKEND_URL", raising=False)
    assert get_api_base_url("local") == "http://127.0.0.1:8000"


def test_backend_url_env_wins(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", "https://tracker.example.com/")
    assert get_api_base_url("production") == "https://tracker.example.com"


def test_production_requires_url(monkeypatch):
    monkeypatch.delenv("BACKEND_URL", raising=False)
    with pytest.raises(RuntimeError):
        get_api_base_url("production")


@pytest.mark.parametrize("url", ["http://tracker.example.com", "https://localhost:8000"])
def test_production_rejects_insecure_urls(monkeypatch, url):
    monkeypatch.setenv("BACKEND_URL", url)
    with pytest.raises(ValueError):
        get_api_base_url("production")


def test_local_accepts_plain_http(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", "http://localhost:9000")
    assert get_api_base_url("local") == "http://localhost:9000"
