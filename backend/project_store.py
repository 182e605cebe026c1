"""
backend/project_store.py

Project store: the `projects` collection plus the multi-step operations
that keep references consistent across collections.

- assign/remove mirror every change on the developer side
- delete cascades: phases -> developer references -> project row

All functions take an open connection; callers run them inside one
get_db_connection() block so each multi-step operation commits or rolls
back as a whole.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from backend import identity_store, phase_store
from backend.db import dedupe, dump_list, load_list, new_id, now_iso, row_to_dict
from backend.models import Project, ProjectStatus

# model field -> column
_PROJECT_COLUMNS = {
    "name": "name",
    "description": "description",
    "status": "status",
    "start_date": "start_date",
    "end_date": "end_date",
}


def project_from_row(row) -> Project:
    data = row_to_dict(row)
    return Project(
        id=data["id"],
        name=data["name"],
        description=data["description"],
        status=data["status"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        owner_id=data["owner_id"],
        assigned_developers=load_list(data.get("assigned_developers_json")),
        phases=load_list(data.get("phases_json")),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def _column_value(value: Any) -> Any:
    if isinstance(value, ProjectStatus):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def get_project(conn: sqlite3.Connection, project_id: str) -> Optional[Project]:
    row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
    return project_from_row(row) if row else None


def list_projects(conn: sqlite3.Connection) -> List[Project]:
    rows = conn.execute("SELECT * FROM projects ORDER BY created_at DESC").fetchall()
    return [project_from_row(row) for row in rows]


def list_projects_for_developer(conn: sqlite3.Connection, developer_id: str) -> List[Project]:
    rows = conn.execute(
        """
        SELECT * FROM projects
        WHERE EXISTS (
            SELECT 1 FROM json_each(projects.assigned_developers_json) WHERE value = ?
        )
        ORDER BY created_at DESC
        """,
        (developer_id,),
    ).fetchall()
    return [project_from_row(row) for row in rows]


def get_projects(conn: sqlite3.Connection, project_ids: Iterable[str]) -> List[Project]:
    """Fetch projects by id, preserving the order of project_ids and skipping unknown ids."""
    ids = dedupe(list(project_ids))
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM projects WHERE id IN ({placeholders})", ids).fetchall()
    by_id = {row["id"]: project_from_row(row) for row in rows}
    return [by_id[i] for i in ids if i in by_id]


def create_project(
    conn: sqlite3.Connection,
    *,
    owner_id: str,
    name: str,
    description: str,
    start_date: date,
    end_date: date,
    status: ProjectStatus = ProjectStatus.planning,
) -> Project:
    project_id = new_id()
    now = now_iso()
    conn.execute(
        """
        INSERT INTO projects (
            id, name, description, status, start_date, end_date, owner_id,
            assigned_developers_json, phases_json, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, '[]', '[]', ?, ?)
        """,
        (project_id, name, description, status.value, start_date.isoformat(),
         end_date.isoformat(), owner_id, now, now),
    )
    return get_project(conn, project_id)


def update_project(conn: sqlite3.Connection, project_id: str, updates: Dict[str, Any]) -> Optional[Project]:
    """Apply already-authorized field updates; unknown keys are ignored."""
    assignments = []
    params: List[Any] = []
    for field, value in updates.items():
        column = _PROJECT_COLUMNS.get(field)
        if column is None:
            continue
        assignments.append(f"{column} = ?")
        params.append(_column_value(value))

    if assignments:
        assignments.append("updated_at = ?")
        params.extend([now_iso(), project_id])
        conn.execute(f"UPDATE projects SET {', '.join(assignments)} WHERE id = ?", params)

    return get_project(conn, project_id)


def _rewrite_developers(conn: sqlite3.Connection, project_id: str, developer_ids: List[str]) -> None:
    conn.execute(
        "UPDATE projects SET assigned_developers_json = ?, updated_at = ? WHERE id = ?",
        (dump_list(developer_ids), now_iso(), project_id),
    )


def assign_developers(conn: sqlite3.Connection, project: Project, developer_ids: Iterable[str]) -> Project:
    """Add developers to the project and the project to each developer."""
    ids = dedupe(list(developer_ids))
    merged = dedupe(project.assigned_developers + ids)
    if merged != project.assigned_developers:
        _rewrite_developers(conn, project.id, merged)
    identity_store.link_project(conn, ids, project.id)
    return get_project(conn, project.id)


def remove_developers(conn: sqlite3.Connection, project: Project, developer_ids: Iterable[str]) -> Project:
    """Remove developers from the project and the project from each developer."""
    ids = set(developer_ids)
    remaining = [d for d in project.assigned_developers if d not in ids]
    if remaining != project.assigned_developers:
        _rewrite_developers(conn, project.id, remaining)
    identity_store.unlink_project(conn, ids, project.id)
    return get_project(conn, project.id)


def append_phase(conn: sqlite3.Connection, project_id: str, phase_id: str) -> None:
    project = get_project(conn, project_id)
    conn.execute(
        "UPDATE projects SET phases_json = ?, updated_at = ? WHERE id = ?",
        (dump_list(project.phases + [phase_id]), now_iso(), project_id),
    )


def delete_project(conn: sqlite3.Connection, project: Project) -> Dict[str, int]:
    """
    Cascade delete, in order:
    1. delete every phase whose parent is the project
    2. pull the project id from every identity that references it
    3. delete the project row

    Returns counts for logging.
    """
    phases_deleted = phase_store.delete_phases_for_project(conn, project.id)
    developers_unlinked = identity_store.pull_project_everywhere(conn, project.id)
    conn.execute("DELETE FROM projects WHERE id = ?", (project.id,))
    return {"phases_deleted": phases_deleted, "developers_unlinked": developers_unlinked}
