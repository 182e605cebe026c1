"""
Storage tests: unit-of-work isolation and database error handling.

Two units of work never interleave their read-modify-write of the JSON
list columns, and a storage failure part way through a cascade leaves
every document as it was.

Run: pytest backend/test_storage.py -v
"""

import sqlite3
import threading
import time

import pytest

from backend import config, identity_store, project_store
from backend.db import get_db, get_db_connection, load_list


def stored_assigned_projects(user_id: str):
    conn = get_db()
    try:
        row = conn.execute("SELECT assigned_projects_json FROM users WHERE id = ?", (user_id,)).fetchone()
        return load_list(row["assigned_projects_json"])
    finally:
        conn.close()


def count_rows(table: str, where: str = "", params=()) -> int:
    conn = get_db()
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table} {where}", params).fetchone()[0]
    finally:
        conn.close()


def stored_developers(project_id: str):
    conn = get_db()
    try:
        return project_store.get_project(conn, project_id).assigned_developers
    finally:
        conn.close()


class TestUnitOfWork:

    def test_second_writer_waits_for_the_lock(self, client, monkeypatch):
        monkeypatch.setattr(config, "DB_BUSY_TIMEOUT_SECONDS", 0.05)

        with get_db_connection():
            with pytest.raises(sqlite3.OperationalError):
                with get_db_connection():
                    pass

        # Lock released once the first block commits
        with get_db_connection() as conn:
            conn.execute("SELECT 1")

    def test_interleaved_assigns_keep_both_developers(self, client, make_project, make_developer):
        project_id = make_project("Alpha")["id"]
        ann = make_developer("Ann")["id"]
        ben = make_developer("Ben")["id"]
        errors = []
        started = threading.Event()

        def assign_ann():
            started.set()
            try:
                with get_db_connection() as conn:
                    project = project_store.get_project(conn, project_id)
                    project_store.assign_developers(conn, project, [ann])
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=assign_ann)
        with get_db_connection() as conn:
            loaded = project_store.get_project(conn, project_id)
            worker.start()
            started.wait(timeout=5)
            time.sleep(0.1)
            project_store.assign_developers(conn, loaded, [ben])
        worker.join(timeout=10)

        assert not errors
        assert sorted(stored_developers(project_id)) == sorted([ann, ben])
        assert stored_assigned_projects(ann) == [project_id]
        assert stored_assigned_projects(ben) == [project_id]

class TestDatabaseErrors:

    def test_failed_cascade_returns_500_and_rolls_back(self, client, owner, make_project, make_developer, monkeypatch):
        project_id = make_project("Alpha")["id"]
        dana = make_developer("Dana")
        client.post(f"/projects/{project_id}/assign", json={"developerIds": [dana["id"]]},
                    headers=owner["headers"])
        resp = client.post(
            f"/projects/{project_id}/phases",
            json={"name": "Design", "startDate": "2024-01-01", "endDate": "2024-01-31", "tasks": ["wireframes"]},
            headers=owner["headers"],
        )
        assert resp.status_code == 201

        def fail(conn, project_id):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(identity_store, "pull_project_everywhere", fail)

        resp = client.delete(f"/projects/{project_id}", headers=owner["headers"])

        assert resp.status_code == 500
        assert resp.json() == {"detail": "Database error"}
        assert count_rows("phases", "WHERE project_id = ?", (project_id,)) == 1
        assert count_rows("projects", "WHERE id = ?", (project_id,)) == 1
        assert stored_assigned_projects(dana["id"]) == [project_id]
