"""
backend/identity_store.py

Identity store: owner and developer records in the `users` collection.

Each developer carries the ids of the projects they are assigned to
(`assigned_projects`); project_store keeps that list symmetric with
`projects.assigned_developers` by calling the link/unlink helpers here
inside the same transaction.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Union

from backend.db import dedupe, dump_list, load_list, new_id, now_iso, row_to_dict
from backend.models import DeveloperProfile, IdentityAdapter, OwnerProfile

AnyIdentity = Union[OwnerProfile, DeveloperProfile]

# model field -> column
_PROFILE_COLUMNS = {
    "name": "name",
    "school": "school",
    "grade": "grade",
    "hours_per_week": "hours_per_week",
    "resume": "resume",
    "skills": "skills_json",
}


def identity_from_row(row) -> AnyIdentity:
    data = row_to_dict(row)
    doc: Dict[str, Any] = {
        "id": data["id"],
        "role": data["role"],
        "name": data["name"],
        "email": data["email"],
        "password_hash": data["password_hash"],
        "assigned_projects": load_list(data.get("assigned_projects_json")),
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
    }
    if data["role"] == "owner":
        doc["username"] = data.get("username") or ""
    else:
        doc.update(
            school=data.get("school") or "",
            grade=data.get("grade") or "",
            hours_per_week=data.get("hours_per_week") or 0,
            resume=data.get("resume") or "",
            skills=load_list(data.get("skills_json")),
        )
    return IdentityAdapter.validate_python(doc)


def get_identity(conn: sqlite3.Connection, user_id: str) -> Optional[AnyIdentity]:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return identity_from_row(row) if row else None


def find_by_email(conn: sqlite3.Connection, email: str, role: Optional[str] = None) -> Optional[AnyIdentity]:
    if role:
        row = conn.execute("SELECT * FROM users WHERE email = ? AND role = ?", (email, role)).fetchone()
    else:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
    return identity_from_row(row) if row else None


def find_owner_by_username(conn: sqlite3.Connection, username: str) -> Optional[OwnerProfile]:
    row = conn.execute(
        "SELECT * FROM users WHERE username = ? AND role = 'owner'", (username,)
    ).fetchone()
    return identity_from_row(row) if row else None


def create_developer(
    conn: sqlite3.Connection,
    *,
    name: str,
    email: str,
    password_hash: str,
    school: str,
    grade: str,
    hours_per_week: float,
    resume: str,
    skills: Iterable[str] = (),
) -> DeveloperProfile:
    """
    Insert a developer identity.

    Raises:
        sqlite3.IntegrityError: if another developer already has the email
    """
    user_id = new_id()
    now = now_iso()
    conn.execute(
        """
        INSERT INTO users (
            id, role, name, email, password_hash,
            school, grade, hours_per_week, resume, skills_json,
            assigned_projects_json, created_at, updated_at
        ) VALUES (?, 'developer', ?, ?, ?, ?, ?, ?, ?, ?, '[]', ?, ?)
        """,
        (user_id, name, email, password_hash, school, grade, hours_per_week, resume,
         dump_list(skills), now, now),
    )
    return get_identity(conn, user_id)


def create_owner(conn: sqlite3.Connection, *, username: str, email: str, password_hash: str) -> OwnerProfile:
    """Materialize an allow-listed owner on first login."""
    user_id = new_id()
    now = now_iso()
    conn.execute(
        """
        INSERT INTO users (
            id, role, name, email, username, password_hash,
            assigned_projects_json, created_at, updated_at
        ) VALUES (?, 'owner', ?, ?, ?, ?, '[]', ?, ?)
        """,
        (user_id, username, email, username, password_hash, now, now),
    )
    return get_identity(conn, user_id)


def update_profile(conn: sqlite3.Connection, user_id: str, updates: Dict[str, Any]) -> Optional[AnyIdentity]:
    """Apply already-authorized profile field updates; unknown keys are ignored."""
    assignments = []
    params: List[Any] = []
    for field, value in updates.items():
        column = _PROFILE_COLUMNS.get(field)
        if column is None:
            continue
        assignments.append(f"{column} = ?")
        params.append(dump_list(value) if field == "skills" else value)

    if assignments:
        assignments.append("updated_at = ?")
        params.append(now_iso())
        params.append(user_id)
        conn.execute(f"UPDATE users SET {', '.join(assignments)} WHERE id = ?", params)

    return get_identity(conn, user_id)


def list_developers(conn: sqlite3.Connection) -> List[DeveloperProfile]:
    rows = conn.execute(
        "SELECT * FROM users WHERE role = 'developer' ORDER BY name COLLATE NOCASE, created_at"
    ).fetchall()
    return [identity_from_row(row) for row in rows]


def get_identities(conn: sqlite3.Connection, user_ids: Iterable[str]) -> Dict[str, AnyIdentity]:
    """Fetch several identities at once, keyed by id; unknown ids are absent."""
    ids = dedupe(list(user_ids))
    if not ids:
        return {}
    placeholders = ", ".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM users WHERE id IN ({placeholders})", ids).fetchall()
    return {row["id"]: identity_from_row(row) for row in rows}


# ---------------------------------------------------------
# Assignment symmetry (developer side)
# ---------------------------------------------------------
def _rewrite_assigned_projects(conn: sqlite3.Connection, user_id: str, project_ids: List[str]) -> None:
    conn.execute(
        "UPDATE users SET assigned_projects_json = ?, updated_at = ? WHERE id = ?",
        (dump_list(project_ids), now_iso(), user_id),
    )


def link_project(conn: sqlite3.Connection, developer_ids: Iterable[str], project_id: str) -> None:
    """Add project_id to each developer's assigned_projects (set semantics)."""
    for identity in get_identities(conn, developer_ids).values():
        if project_id not in identity.assigned_projects:
            _rewrite_assigned_projects(conn, identity.id, identity.assigned_projects + [project_id])


def unlink_project(conn: sqlite3.Connection, developer_ids: Iterable[str], project_id: str) -> None:
    """Remove project_id from each developer's assigned_projects."""
    for identity in get_identities(conn, developer_ids).values():
        if project_id in identity.assigned_projects:
            remaining = [p for p in identity.assigned_projects if p != project_id]
            _rewrite_assigned_projects(conn, identity.id, remaining)


def pull_project_everywhere(conn: sqlite3.Connection, project_id: str) -> int:
    """Remove project_id from every identity that references it; returns count touched."""
    rows = conn.execute(
        """
        SELECT id FROM users
        WHERE EXISTS (SELECT 1 FROM json_each(users.assigned_projects_json) WHERE value = ?)
        """,
        (project_id,),
    ).fetchall()
    ids = [row["id"] for row in rows]
    unlink_project(conn, ids, project_id)
    return len(ids)
