"""
frontend/auth.py
Authentication state for the Project Tracker frontend.

Streamlit reruns the whole script on every interaction, so auth state
lives in st.session_state and every rerun starts with init_auth_state().

- init_auth_state(): call at the top of main() on every rerun
- set_auth(): store token and user summary after login
- clear_auth(): logout or session expiry
- require_auth(): guard for protected pages
- get_auth_header(): Authorization header for every protected API call
"""

from typing import Optional, Dict, Any
import streamlit as st


def init_auth_state() -> None:
    """Initialize auth-related session state keys. Idempotent."""
    ss = st.session_state
    ss.setdefault("auth_token", None)
    ss.setdefault("current_user", None)
    ss.setdefault("is_authenticated", False)

    # Keep the flag in sync with the token
    ss["is_authenticated"] = bool(ss["auth_token"])


def set_auth(auth_token: str, current_user: Dict[str, Any]) -> None:
    """
    Store auth state after a successful login.

    Args:
        auth_token: session token (Bearer token for API calls)
        current_user: user summary from /auth/login (id, name, email, role, ...)
    """
    ss = st.session_state
    ss["auth_token"] = auth_token
    ss["current_user"] = current_user
    ss["is_authenticated"] = True


def update_current_user(fields: Dict[str, Any]) -> None:
    """Merge profile changes into the cached user summary."""
    user = dict(st.session_state.get("current_user") or {})
    user.update(fields)
    st.session_state["current_user"] = user


def clear_auth() -> None:
    """Clear all authentication state. Safe to call multiple times."""
    ss = st.session_state
    ss["auth_token"] = None
    ss["current_user"] = None
    ss["is_authenticated"] = False
    ss.pop("selected_project_id", None)


def is_authenticated() -> bool:
    return bool(st.session_state.get("auth_token"))


def get_current_user() -> Optional[Dict[str, Any]]:
    return st.session_state.get("current_user")


def get_role() -> Optional[str]:
    user = get_current_user()
    if user and isinstance(user, dict):
        return user.get("role")
    return None


def is_owner() -> bool:
    return get_role() == "owner"


def get_auth_header() -> Dict[str, str]:
    """
    Authorization header dict for API requests.

    Returns:
        {"Authorization": "Bearer <token>"} if authenticated, {} otherwise
    """
    token = st.session_state.get("auth_token")
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


def require_auth(redirect_to_login: bool = True) -> bool:
    """
    Guard for protected pages.

    Usage at top of page render functions:
        if not require_auth():
            return

    Returns:
        True if authenticated, False otherwise (caller should stop rendering)
    """
    if not is_authenticated():
        st.warning("⚠️ You must be logged in to access this page.")

        if redirect_to_login:
            st.session_state["nav_page"] = "Login"
            st.info("Please log in to continue.")

        if st.button("Go to Login", type="primary"):
            st.session_state["nav_page"] = "Login"
            st.rerun()

        return False

    return True
