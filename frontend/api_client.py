"""
frontend/api_client.py
Centralized API client for all backend requests.

This module ensures:
1. Protected calls always carry the Authorization header
2. 401 clears the session and sends the user back to Login
3. 403 shows a consistent permission message
4. Connection problems surface as a message instead of a traceback

Endpoint helpers at the bottom return (ok, data_or_error) tuples so page
code never touches requests directly.
"""

import time
from typing import Any, Dict, List, Literal, Optional, Tuple

import requests
import streamlit as st

from frontend.auth import clear_auth, get_auth_header
from frontend.config import IS_DEV, REQUEST_TIMEOUT_SECONDS, get_api_base_url

PUBLIC_PATHS = ("/auth/login", "/auth/register", "/health")

Result = Tuple[bool, Any]


def is_public_endpoint(path: str) -> bool:
    """Public endpoints never get an Authorization header."""
    return path in PUBLIC_PATHS


def api_request(
    method: Literal["GET", "POST", "PUT", "DELETE"],
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> Optional[requests.Response]:
    """
    Make an API request with auth header attachment and error handling.

    Security:
    - Never logs or prints tokens/auth headers

    Returns:
        Response object, or None on connection/config error (a message is shown)
    """
    try:
        base_url = get_api_base_url()
    except (RuntimeError, ValueError) as e:
        st.error(f"⚙️ Configuration error: {e}")
        return None

    url = f"{base_url}{path}"
    headers = {"Accept": "application/json"}

    if not is_public_endpoint(path):
        auth_headers = get_auth_header()
        if not auth_headers:
            st.error("🔒 Authentication required. Please log in.")
            return None
        headers.update(auth_headers)

    try:
        resp = requests.request(method, url, json=json, params=params, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout:
        if IS_DEV:
            print(f"[API] Timeout on {method} {path}")
        st.error(f"⏱️ Request timed out after {timeout}s. Please try again.")
        _update_backend_status("timeout")
        return None
    except requests.exceptions.ConnectionError:
        if IS_DEV:
            print(f"[API] Connection error on {method} {path}")
        st.error(f"🔌 Cannot connect to backend at {base_url}. Please check your connection.")
        _update_backend_status("connection_error")
        return None
    except requests.exceptions.RequestException as e:
        if IS_DEV:
            print(f"[API] Request error on {method} {path}: {type(e).__name__}")
        st.error("❌ Request failed. Please try again.")
        _update_backend_status("error")
        return None

    _update_backend_status("ok")

    if resp.status_code == 401 and not is_public_endpoint(path):
        if IS_DEV:
            print(f"[API] 401 on {path}, clearing session")
        _handle_session_expired()
        return None

    if resp.status_code == 403:
        if IS_DEV:
            print(f"[API] 403 Forbidden on {path}")
        st.error(f"⛔ {error_detail(resp, 'You do not have permission to perform this action.')}")

    return resp


def error_detail(resp: Optional[requests.Response], default: str = "Request failed") -> str:
    """Backend error message from a {"detail": ...} body, or a default."""
    if resp is None:
        return default
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return default


def _handle_session_expired() -> None:
    st.warning("🔒 Your session has expired. Please log in again.")
    clear_auth()
    st.session_state["nav_page"] = "Login"
    st.rerun()


def _update_backend_status(status: str) -> None:
    ss = st.session_state
    ss["_backend_status"] = status
    ss["_backend_last_ping_time"] = time.time()


def _result(resp: Optional[requests.Response], ok_codes=(200, 201)) -> Result:
    if resp is None:
        return False, "No response from backend"
    if resp.status_code in ok_codes:
        return True, resp.json()
    return False, error_detail(resp, f"Request failed (HTTP {resp.status_code})")


# ---------------------------------------------------------
# Auth
# ---------------------------------------------------------
def login(password: str, *, username: Optional[str] = None, email: Optional[str] = None) -> Result:
    body: Dict[str, Any] = {"password": password}
    if username is not None:
        body.update(type="owner", username=username)
    else:
        body.update(type="developer", email=email)
    return _result(api_request("POST", "/auth/login", json=body))


def register(payload: Dict[str, Any]) -> Result:
    return _result(api_request("POST", "/auth/register", json=payload))


# ---------------------------------------------------------
# Projects and phases
# ---------------------------------------------------------
def list_projects() -> Result:
    return _result(api_request("GET", "/projects"))


def get_project(project_id: str) -> Result:
    return _result(api_request("GET", f"/projects/{project_id}"))


def create_project(payload: Dict[str, Any]) -> Result:
    return _result(api_request("POST", "/projects", json=payload))


def update_project(project_id: str, updates: Dict[str, Any]) -> Result:
    return _result(api_request("PUT", f"/projects/{project_id}", json=updates))


def delete_project(project_id: str) -> Result:
    return _result(api_request("DELETE", f"/projects/{project_id}"))


def assign_developers(project_id: str, developer_ids: List[str]) -> Result:
    return _result(api_request("POST", f"/projects/{project_id}/assign", json={"developerIds": developer_ids}))


def remove_developers(project_id: str, developer_ids: List[str]) -> Result:
    return _result(api_request("POST", f"/projects/{project_id}/remove", json={"developerIds": developer_ids}))


def create_phase(project_id: str, payload: Dict[str, Any]) -> Result:
    return _result(api_request("POST", f"/projects/{project_id}/phases", json=payload))


def update_phase(project_id: str, phase_id: str, updates: Dict[str, Any]) -> Result:
    return _result(api_request("PUT", f"/projects/{project_id}/phases/{phase_id}", json=updates))


# ---------------------------------------------------------
# Developers
# ---------------------------------------------------------
def list_developers() -> Result:
    return _result(api_request("GET", "/developers"))


def get_profile() -> Result:
    return _result(api_request("GET", "/developers/profile"))


def update_profile(updates: Dict[str, Any]) -> Result:
    return _result(api_request("PUT", "/developers/profile", json=updates))
