from __future__ import annotations

from pathlib import Path

from rentsync import db


def test_initialize_schema_sets_user_version(tmp_path: Path) -> None:
    conn = db.connect(tmp_path / "rent.sqlite")
    try:
        db.initialize_schema(conn)
        row = conn.execute("PRAGMA user_version").fetchone()
    finally:
        conn.close()

    assert row is not None
    assert int(row[0]) == db.SCHEMA_VERSION


def test_initialize_schema_is_repeatable(tmp_path: Path) -> None:
    conn = db.connect(tmp_path / "rent.sqlite")
    try:
        db.initialize_schema(conn)
        conn.execute(
            "INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)",
            ("rentapp_properties", "[]", "2026-01-01T00:00:00+00:00"),
        )
        conn.commit()
        db.initialize_schema(conn)
        value = conn.execute("SELECT value FROM kv WHERE key = 'rentapp_properties'").fetchone()
    finally:
        conn.close()

    assert value is not None
    assert value["value"] == "[]"


def test_change_seq_helpers_on_empty_log(tmp_path: Path) -> None:
    conn = db.connect(tmp_path / "rent.sqlite")
    try:
        db.initialize_schema(conn)
        assert db.latest_change_seq(conn) == 0
        assert db.earliest_change_seq(conn) is None
    finally:
        conn.close()
