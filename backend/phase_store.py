"""
backend/phase_store.py

Phase store: the `phases` collection. Every phase belongs to exactly one
project; project_store.append_phase records it on the parent.

Phases carry a `version` counter bumped on every update so callers can
opt into optimistic concurrency with `expected_version`.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date
from typing import Iterable, List, Optional

from backend.db import load_list, new_id, now_iso, row_to_dict
from backend.models import Phase, PhaseStatus, Task


class PhaseVersionConflict(Exception):
    """The stored phase version no longer matches the caller's expectation."""

    def __init__(self, phase_id: str, expected: int, actual: int):
        super().__init__(f"Phase {phase_id} is at version {actual}, expected {expected}")
        self.phase_id = phase_id
        self.expected = expected
        self.actual = actual


def phase_from_row(row) -> Phase:
    data = row_to_dict(row)
    return Phase(
        id=data["id"],
        project_id=data["project_id"],
        name=data["name"],
        status=data["status"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        tasks=load_list(data.get("tasks_json")),
        version=data.get("version") or 1,
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def _dump_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([task.model_dump(by_alias=True) for task in tasks])


def get_phase(conn: sqlite3.Connection, phase_id: str) -> Optional[Phase]:
    row = conn.execute("SELECT * FROM phases WHERE id = ?", (phase_id,)).fetchone()
    return phase_from_row(row) if row else None


def list_phases(conn: sqlite3.Connection, phase_ids: Iterable[str]) -> List[Phase]:
    """Fetch phases by id in the given order, skipping unknown ids."""
    ids = list(phase_ids)
    if not ids:
        return []
    placeholders = ", ".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM phases WHERE id IN ({placeholders})", ids).fetchall()
    by_id = {row["id"]: phase_from_row(row) for row in rows}
    return [by_id[i] for i in ids if i in by_id]


def create_phase(
    conn: sqlite3.Connection,
    *,
    project_id: str,
    name: str,
    start_date: date,
    end_date: date,
    task_names: Iterable[str] = (),
) -> Phase:
    phase_id = new_id()
    now = now_iso()
    tasks = [Task(name=task_name) for task_name in task_names]
    conn.execute(
        """
        INSERT INTO phases (
            id, project_id, name, status, start_date, end_date, tasks_json,
            version, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
        """,
        (phase_id, project_id, name, PhaseStatus.pending.value, start_date.isoformat(),
         end_date.isoformat(), _dump_tasks(tasks), now, now),
    )
    return get_phase(conn, phase_id)


def update_phase(
    conn: sqlite3.Connection,
    phase: Phase,
    *,
    status: Optional[PhaseStatus] = None,
    tasks: Optional[List[Task]] = None,
    expected_version: Optional[int] = None,
) -> Phase:
    """
    Replace status and/or the whole task list and bump the version.

    Raises:
        PhaseVersionConflict: expected_version given and stale
    """
    new_status = status if status is not None else phase.status
    new_tasks = tasks if tasks is not None else phase.tasks

    if expected_version is None:
        conn.execute(
            """
            UPDATE phases SET status = ?, tasks_json = ?, version = version + 1, updated_at = ?
            WHERE id = ?
            """,
            (new_status.value, _dump_tasks(new_tasks), now_iso(), phase.id),
        )
    else:
        cur = conn.execute(
            """
            UPDATE phases SET status = ?, tasks_json = ?, version = version + 1, updated_at = ?
            WHERE id = ? AND version = ?
            """,
            (new_status.value, _dump_tasks(new_tasks), now_iso(), phase.id, expected_version),
        )
        if cur.rowcount == 0:
            current = get_phase(conn, phase.id)
            raise PhaseVersionConflict(phase.id, expected_version, current.version if current else 0)

    return get_phase(conn, phase.id)


def delete_phases_for_project(conn: sqlite3.Connection, project_id: str) -> int:
    cur = conn.execute("DELETE FROM phases WHERE project_id = ?", (project_id,))
    return cur.rowcount
