from __future__ import annotations

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".rentsync.sqlite"
SCHEMA_VERSION = 1


def connect(db_path: Path | str, check_same_thread: bool = True) -> sqlite3.Connection:
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=check_same_thread, timeout=5.0)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.OperationalError:
        conn.execute("PRAGMA journal_mode = DELETE")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Every write/remove lands here so other views can learn which keys moved.
        CREATE TABLE IF NOT EXISTS kv_changes (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            key TEXT NOT NULL,
            op TEXT NOT NULL,
            writer_id TEXT NOT NULL,
            changed_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_kv_changes_writer ON kv_changes(writer_id, seq);
        """
    )
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    conn.commit()


def latest_change_seq(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT MAX(seq) AS seq FROM kv_changes").fetchone()
    if row is None or row["seq"] is None:
        return 0
    return int(row["seq"])


def earliest_change_seq(conn: sqlite3.Connection) -> int | None:
    row = conn.execute("SELECT MIN(seq) AS seq FROM kv_changes").fetchone()
    if row is None or row["seq"] is None:
        return None
    return int(row["seq"])
