"""
backend/auth_context.py

Shared authentication primitives for FastAPI dependency injection.

Contains:
- hash_password / verify_password: bcrypt credential hashing
- create_access_token / verify_token: JWT session tokens
- AuthContext: immutable caller identity derived from the token
- require_auth_context: FastAPI dependency for auth enforcement

This module MUST NOT import backend.main to avoid circular dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict

from backend import config
from backend.config import SECRET_KEY, ALGORITHM, TOKEN_HOURS, IS_DEV
from backend.db import get_db_connection
from backend.identity_store import get_identity
from backend.models import UserRole

# auto_error=False so a missing header is a 401 like any other bad token
security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------
# Password hashing
# ---------------------------------------------------------
def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt (BCRYPT_ROUNDS cost)."""
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash, or a password over the 72 byte limit
        return False


# ---------------------------------------------------------
# JWT session tokens
# ---------------------------------------------------------
def create_access_token(user_id: str, role: str, *, hours: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=hours if hours is not None else TOKEN_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT session token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


# ---------------------------------------------------------
# AuthContext
# ---------------------------------------------------------
class AuthContext(BaseModel):
    """
    Immutable caller identity derived from the session token.

    The role comes from the stored identity, not the token claim, so a
    stale token cannot carry a role the store no longer agrees with.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    name: str
    email: str

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.owner

    @property
    def is_developer(self) -> bool:
        return self.role == UserRole.developer


def require_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthContext:
    """
    Auth dependency for every protected route.

    Process:
    1. Require a bearer token
    2. Verify JWT signature and expiration
    3. Load the identity named by `sub` from the store
    4. Return AuthContext

    Raises:
        HTTPException(401): missing, invalid or expired token, or unknown identity
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        print("[AUTH] Missing sub in token payload")
        raise HTTPException(status_code=401, detail="Invalid token payload")

    with get_db_connection() as conn:
        identity = get_identity(conn, user_id)

    if identity is None:
        print(f"[AUTH] Identity not found: user_id={user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    ctx = AuthContext(
        user_id=identity.id,
        role=UserRole(identity.role),
        name=identity.name,
        email=identity.email,
    )

    if IS_DEV:
        print(f"[AUTH] Authenticated: user_id={ctx.user_id}, role={ctx.role.value}")

    return ctx
