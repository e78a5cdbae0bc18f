from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from .. import db
from . import topics
from .bus import ChangeEvent, SyncBus

logger = logging.getLogger(__name__)


class StorageWatcher:
    """Turns other views' writes into ``storage`` events on a bus.

    Reads the shared change log past its cursor and skips rows stamped with
    its own ``writer_id``, the way a browser only fires ``storage`` in tabs
    other than the one that wrote.
    """

    def __init__(
        self,
        db_path: Path | str,
        bus: SyncBus,
        *,
        writer_id: str,
        interval_s: float = 1.0,
    ) -> None:
        self.bus = bus
        self.writer_id = writer_id
        self.interval_s = interval_s
        self.conn = db.connect(db_path, check_same_thread=False)
        db.initialize_schema(self.conn)
        self.cursor = db.latest_change_seq(self.conn)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._poll_lock = threading.Lock()

    def poll(self) -> list[ChangeEvent]:
        with self._poll_lock:
            try:
                rows = self.conn.execute(
                    """
                    SELECT seq, key, op, writer_id, changed_at
                    FROM kv_changes
                    WHERE seq > ?
                    ORDER BY seq
                    """,
                    (self.cursor,),
                ).fetchall()
                earliest = db.earliest_change_seq(self.conn)
            except sqlite3.Error as exc:
                logger.warning("watcher: change log read failed", exc_info=exc)
                return []
            events: list[ChangeEvent] = []
            if earliest is not None and earliest > self.cursor + 1:
                # Rows we never saw were pruned; callers must re-read everything.
                events.append(
                    self.bus.publish(topics.STORAGE, {"op": "resync"}, source="storage")
                )
            for row in rows:
                self.cursor = max(self.cursor, int(row["seq"]))
                if row["writer_id"] == self.writer_id:
                    continue
                events.append(
                    self.bus.publish(
                        topics.STORAGE,
                        {
                            "op": row["op"],
                            "writerId": row["writer_id"],
                            "changedAt": row["changed_at"],
                        },
                        source="storage",
                        key=row["key"],
                    )
                )
            return events

    def run(self, stop_event: threading.Event | None = None) -> None:
        stop = stop_event or self._stop
        while not stop.wait(self.interval_s):
            try:
                self.poll()
            except Exception as exc:
                logger.exception("watcher: poll failed", exc_info=exc)

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, name="rentsync-storage-watcher", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def close(self) -> None:
        self.stop()
        self.conn.close()
