"""
backend/routes_developers.py

Developer directory and self-service profile endpoints.

- GET /developers          : owners only, every developer with assigned project names
- GET /developers/profile  : caller's own profile with assigned projects populated
- PUT /developers/profile  : caller updates their own profile
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from backend import identity_store, project_store
from backend.auth_context import AuthContext, require_auth_context
from backend.authz import Operation
from backend.db import get_db_connection
from backend.dependencies import require_operation
from backend.identity_store import AnyIdentity
from backend.models import OwnerProfile
from backend.schemas import DEVELOPER_ONLY_PROFILE_FIELDS, ProfileUpdateRequest


router = APIRouter(
    prefix="/developers",
    tags=["developers"],
)

PROJECT_SUMMARY_FIELDS = ("id", "name", "description", "status", "startDate", "endDate")


def profile_payload(conn: sqlite3.Connection, identity: AnyIdentity, *, project_fields=PROJECT_SUMMARY_FIELDS) -> Dict[str, Any]:
    """Identity without credential, assignedProjects populated with project summaries."""
    payload = identity.model_dump(mode="json", by_alias=True, exclude={"assigned_projects"})
    projects = project_store.get_projects(conn, identity.assigned_projects)
    payload["assignedProjects"] = [
        {k: v for k, v in p.model_dump(mode="json", by_alias=True).items() if k in project_fields}
        for p in projects
    ]
    return payload


@router.get("", dependencies=[Depends(require_operation(Operation.DEVELOPER_LIST))])
def list_developers() -> List[Dict[str, Any]]:
    with get_db_connection() as conn:
        return [
            profile_payload(conn, dev, project_fields=("id", "name"))
            for dev in identity_store.list_developers(conn)
        ]


@router.get("/profile")
def get_profile(ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    with get_db_connection() as conn:
        identity = identity_store.get_identity(conn, ctx.user_id)
        if identity is None:
            raise HTTPException(status_code=404, detail="User not found")
        return profile_payload(conn, identity)


@router.put("/profile")
def update_profile(req: ProfileUpdateRequest, ctx: AuthContext = Depends(require_auth_context)) -> Dict[str, Any]:
    """
    Update the caller's own profile.

    Developers may change name, school, grade, hoursPerWeek, resume, skills.
    Owners may change only name.

    Raises:
        HTTPException(400): no recognized fields, or developer-only fields from an owner
    """
    updates = req.submitted()
    if not updates:
        raise HTTPException(status_code=400, detail="No valid updates provided")

    with get_db_connection() as conn:
        identity = identity_store.get_identity(conn, ctx.user_id)
        if identity is None:
            raise HTTPException(status_code=404, detail="User not found")

        if isinstance(identity, OwnerProfile):
            rejected = sorted(set(updates) & DEVELOPER_ONLY_PROFILE_FIELDS)
            if rejected:
                raise HTTPException(
                    status_code=400,
                    detail=f"Fields not applicable to owner profiles: {', '.join(rejected)}",
                )

        identity = identity_store.update_profile(conn, ctx.user_id, updates)
        print(f"[PROFILE] Updated user_id={ctx.user_id}, fields={sorted(updates)}")
        return profile_payload(conn, identity)
