"""
db.py
SQLite helpers + initialization (creates DB/tables, inserts default admin, etc.)

The same file holds the owner account and this replica's store nodes.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import config


def _resolve(db_file: Path | str | None) -> Path:
    return Path(db_file) if db_file else config.db_file()


@contextmanager
def get_conn(db_file: Path | str | None = None):
    conn = sqlite3.connect(_resolve(db_file), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = (), db_file: Path | str | None = None) -> int:
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def fetch_one(sql: str, params: tuple = (), db_file: Path | str | None = None):
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def fetch_all(sql: str, params: tuple = (), db_file: Path | str | None = None) -> list[sqlite3.Row]:
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchall()


def create_tables(db_file: Path | str | None = None) -> None:
    execute(
        """
        CREATE TABLE IF NOT EXISTS admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """,
        db_file=db_file,
    )

    execute(
        """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """,
        db_file=db_file,
    )

    # Store graph: one row per (collection, key); value is JSON, 'null' for tombstones.
    execute(
        """
        CREATE TABLE IF NOT EXISTS nodes (
            soul TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            state INTEGER NOT NULL,
            seq INTEGER NOT NULL,
            PRIMARY KEY (soul, key)
        )
        """,
        db_file=db_file,
    )
    execute("CREATE INDEX IF NOT EXISTS idx_nodes_seq ON nodes(seq)", db_file=db_file)


def _get_setting(key: str, default: str | None = None, db_file: Path | str | None = None) -> str | None:
    row = fetch_one("SELECT value FROM app_settings WHERE key = ?", (key,), db_file=db_file)
    if row:
        return str(row["value"])
    return default


def _set_setting(key: str, value: str, db_file: Path | str | None = None) -> None:
    execute(
        """
        INSERT INTO app_settings(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
        db_file=db_file,
    )


def init_db(default_admin_hash: str, db_file: Path | str | None = None) -> None:
    """
    Initialize the database.
    - Create tables
    - Insert default admin (admin/admin123) if no admin exists
    - Force password change on first login
    """
    create_tables(db_file)

    admin = fetch_one("SELECT id FROM admin_users LIMIT 1", db_file=db_file)
    if not admin:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        execute(
            "INSERT INTO admin_users(username, password_hash, created_at) VALUES(?,?,?)",
            ("admin", default_admin_hash, now),
            db_file=db_file,
        )
        _set_setting("force_password_change", "1", db_file=db_file)
    elif _get_setting("force_password_change", db_file=db_file) is None:
        _set_setting("force_password_change", "0", db_file=db_file)


def has_admin(db_file: Path | str | None = None) -> bool:
    create_tables(db_file)
    return fetch_one("SELECT id FROM admin_users LIMIT 1", db_file=db_file) is not None


def is_force_password_change(db_file: Path | str | None = None) -> bool:
    return _get_setting("force_password_change", db_file=db_file) == "1"


def clear_force_password_change(db_file: Path | str | None = None) -> None:
    _set_setting("force_password_change", "0", db_file=db_file)
