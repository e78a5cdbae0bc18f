from __future__ import annotations

import datetime as dt
import logging
import sqlite3
import threading
from uuid import uuid4

logger = logging.getLogger(__name__)


class StoreWriteError(Exception):
    """A write or remove did not reach the store."""


class QuotaExceededError(StoreWriteError):
    """The value is larger than the store accepts for a single key."""


class KeyValueStore:
    """Synchronous string store shared by every view opened on the same file.

    One instance plays the part of one browser tab: its ``writer_id`` stamps
    each change-log row so the storage watcher can tell foreign writes apart
    from this view's own.

    Storage events arrive on the watcher thread, and their subscribers read
    back through this same connection, so every statement runs under
    ``_lock``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        writer_id: str | None = None,
        max_value_bytes: int = 5_000_000,
        change_log_limit: int = 1000,
    ) -> None:
        self.conn = conn
        self.writer_id = writer_id or uuid4().hex
        self.max_value_bytes = max_value_bytes
        self.change_log_limit = max(1, change_log_limit)
        self._lock = threading.RLock()

    @staticmethod
    def _now_iso() -> str:
        return dt.datetime.now(dt.UTC).isoformat()

    def read(self, key: str) -> str | None:
        """Return the stored value, or None when no row exists.

        Misuse of the connection (closed, wrong thread) raises; only a
        database that cannot be read right now is logged and read as empty.
        """

        try:
            with self._lock:
                row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.OperationalError as exc:
            logger.warning("kv: read failed for %s", key, exc_info=exc)
            return None
        if row is None:
            return None
        return str(row["value"])

    def write(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if size > self.max_value_bytes:
            raise QuotaExceededError(f"{key}: {size} bytes exceeds {self.max_value_bytes}")
        now = self._now_iso()
        try:
            with self._lock, self.conn:
                self.conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
                self._log_change(key, "set", now)
        except sqlite3.ProgrammingError:
            raise
        except sqlite3.Error as exc:
            raise StoreWriteError(f"{key}: {exc}") from exc

    def remove(self, key: str) -> None:
        now = self._now_iso()
        try:
            with self._lock, self.conn:
                cur = self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                if cur.rowcount:
                    self._log_change(key, "remove", now)
        except sqlite3.ProgrammingError:
            raise
        except sqlite3.Error as exc:
            raise StoreWriteError(f"{key}: {exc}") from exc

    def keys(self, prefix: str = "") -> list[str]:
        try:
            with self._lock:
                if not prefix:
                    rows = self.conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
                else:
                    # substr instead of LIKE: keys are full of underscores.
                    rows = self.conn.execute(
                        "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                        (len(prefix), prefix),
                    ).fetchall()
        except sqlite3.OperationalError as exc:
            logger.warning("kv: key scan failed for prefix %r", prefix, exc_info=exc)
            return []
        return [str(row["key"]) for row in rows]

    def _log_change(self, key: str, op: str, now: str) -> None:
        cur = self.conn.execute(
            "INSERT INTO kv_changes(key, op, writer_id, changed_at) VALUES (?, ?, ?, ?)",
            (key, op, self.writer_id, now),
        )
        seq = int(cur.lastrowid or 0)
        if seq > self.change_log_limit:
            self.conn.execute(
                "DELETE FROM kv_changes WHERE seq <= ?",
                (seq - self.change_log_limit,),
            )

    def close(self) -> None:
        with self._lock:
            self.conn.close()
