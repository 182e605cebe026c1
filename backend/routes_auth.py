"""
backend/routes_auth.py

Public authentication endpoints.

- POST /auth/register : developer self-registration
- POST /auth/login    : owner (allow-list) or developer (stored hash) login

Owners are never self-registered: they are checked against the
OwnerDirectory and materialized in the identity store on first login.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from backend import config
from backend.auth_context import create_access_token, hash_password, verify_password
from backend.config import IS_DEV
from backend.db import get_db_connection
from backend.dependencies import get_owner_directory
from backend.identity_store import AnyIdentity, create_developer, create_owner, find_by_email, find_owner_by_username
from backend.models import OwnerProfile, UserRole
from backend.owners import OwnerDirectory
from backend.schemas import LoginRequest, RegisterRequest


router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def user_summary(identity: AnyIdentity) -> Dict[str, Any]:
    """Login payload `user` block; never includes the credential."""
    summary: Dict[str, Any] = {
        "id": identity.id,
        "name": identity.name,
        "email": identity.email,
        "role": identity.role,
    }
    if isinstance(identity, OwnerProfile):
        summary["username"] = identity.username
    else:
        summary.update(
            school=identity.school,
            grade=identity.grade,
            hoursPerWeek=identity.hours_per_week,
        )
    return summary


@router.post("/register", status_code=201)
def register(req: RegisterRequest) -> Dict[str, str]:
    """
    Register a developer.

    Raises:
        HTTPException(400): missing/invalid fields (validation), owner-domain email,
            or email already registered
    """
    if req.email.endswith("@" + config.OWNER_EMAIL_DOMAIN.lower()):
        print("[REGISTER] Rejected owner-domain email")
        raise HTTPException(status_code=400, detail="Email domain is reserved for owners")

    with get_db_connection() as conn:
        if find_by_email(conn, req.email) is not None:
            print("[REGISTER] Rejected duplicate email")
            raise HTTPException(status_code=400, detail="User already exists")

        try:
            developer = create_developer(
                conn,
                name=req.name,
                email=req.email,
                password_hash=hash_password(req.password),
                school=req.school,
                grade=req.grade,
                hours_per_week=req.hours_per_week,
                resume=req.resume,
                skills=req.skills,
            )
        except sqlite3.IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise HTTPException(status_code=400, detail="User already exists")

    print(f"[REGISTER] Developer created: user_id={developer.id}")
    return {"message": "Developer registered successfully"}


def _login_owner(req: LoginRequest, owners: OwnerDirectory) -> OwnerProfile:
    if not owners.verify(req.username, req.password):
        print("[LOGIN] Owner credentials rejected")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    with get_db_connection() as conn:
        owner = find_owner_by_username(conn, req.username)
        if owner is None:
            owner = create_owner(
                conn,
                username=req.username,
                email=f"{req.username}@{config.OWNER_EMAIL_DOMAIN}".lower(),
                password_hash=hash_password(req.password),
            )
            print(f"[LOGIN] Provisioned owner on first login: user_id={owner.id}")
    return owner


def _login_developer(req: LoginRequest) -> AnyIdentity:
    if not req.email:
        raise HTTPException(status_code=400, detail="email is required for developer login")

    with get_db_connection() as conn:
        developer = find_by_email(conn, req.email, role=UserRole.developer.value)

    if developer is None or not verify_password(req.password, developer.password_hash):
        print("[LOGIN] Developer credentials rejected")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return developer


@router.post("/login")
def login(req: LoginRequest, owners: OwnerDirectory = Depends(get_owner_directory)) -> Dict[str, Any]:
    """
    Log in an owner or developer and issue a session token.

    Raises:
        HTTPException(400): username/email missing for the login type
        HTTPException(401): unknown user or wrong password
    """
    if req.type == UserRole.owner:
        if not req.username:
            raise HTTPException(status_code=400, detail="username is required for owner login")
        identity = _login_owner(req, owners)
    else:
        identity = _login_developer(req)

    token = create_access_token(identity.id, identity.role)

    if IS_DEV:
        print(f"[LOGIN] Session issued: user_id={identity.id}, role={identity.role}")

    return {"token": token, "user": user_summary(identity)}
