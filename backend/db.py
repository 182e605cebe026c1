# backend/db.py
# SQLite document store: one table per collection, list fields kept as JSON columns

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path as FsPath
from typing import Any, Dict, Generator, List

from backend import config


def resolve_database_path() -> str:
    """Return the configured database path, relative paths anchored at backend/."""
    path = FsPath(config.DATABASE_PATH)
    if not path.is_absolute():
        path = FsPath(__file__).resolve().parent / path
    return str(path)


def get_db() -> sqlite3.Connection:
    """
    Create and return a SQLite connection with Row factory.

    The connection is in autocommit mode (isolation_level=None): statements
    outside get_db_connection() are not grouped, and transactions are begun
    explicitly. Callers own the connection; prefer get_db_connection() for
    request work.
    """
    conn = sqlite3.connect(
        resolve_database_path(),
        timeout=config.DB_BUSY_TIMEOUT_SECONDS,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for one unit of work.

    The block runs inside BEGIN IMMEDIATE, so the write lock is held from
    the first read: a project loaded at the top of a request cannot be
    changed by another writer before this block writes it back. A second
    unit of work waits up to DB_BUSY_TIMEOUT_SECONDS for the lock, then
    fails with sqlite3.OperationalError ("database is locked").

    Commits when the block exits normally, rolls back on any exception and
    always closes the connection.
    """
    conn = get_db()
    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error:
        conn.close()
        raise
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    with get_db_connection() as conn:
        cur = conn.cursor()

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                role TEXT NOT NULL CHECK (role IN ('owner', 'developer')),
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                username TEXT,
                password_hash TEXT NOT NULL,

                school TEXT,
                grade TEXT,
                hours_per_week REAL,
                resume TEXT,
                skills_json TEXT NOT NULL DEFAULT '[]',

                assigned_projects_json TEXT NOT NULL DEFAULT '[]',

                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        # Owner rows are keyed by username; only developers log in by email
        cur.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_developer_email "
            "ON users(email) WHERE role = 'developer'"
        )
        cur.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_owner_username "
            "ON users(username) WHERE role = 'owner'"
        )

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL,
                status TEXT NOT NULL,
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                owner_id TEXT NOT NULL REFERENCES users(id),
                assigned_developers_json TEXT NOT NULL DEFAULT '[]',
                phases_json TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_projects_owner_id ON projects(owner_id)")

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS phases (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL REFERENCES projects(id),
                name TEXT NOT NULL,
                status TEXT NOT NULL,
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                tasks_json TEXT NOT NULL DEFAULT '[]',
                version INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_phases_project_id ON phases(project_id)")

    print(f"[DB] Initialized SQLite store at {resolve_database_path()}")


# ---------------------------------------------------------
# Row / document helpers
# ---------------------------------------------------------
def row_to_dict(row) -> dict:
    """Convert a sqlite3.Row to dict, or {} if None."""
    if row is None:
        return {}
    return dict(row)


def load_list(raw: Any) -> List[Any]:
    """Decode a JSON list column; NULL or garbage decodes to []."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def dump_list(values: List[Any]) -> str:
    return json.dumps(list(values))


def new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def dedupe(values: List[Any]) -> List[Any]:
    """Drop duplicates while keeping first-seen order (set semantics for id lists)."""
    seen: Dict[Any, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)
