from __future__ import annotations

import datetime as dt
import logging
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from threading import RLock
from typing import Any

logger = logging.getLogger(__name__)

Subscriber = Callable[["ChangeEvent"], None]


def _utc_iso_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat(timespec="milliseconds")


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    sequence: int
    topic: str
    source: str
    timestamp: str
    detail: dict[str, Any] = field(default_factory=dict)
    key: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.source == "storage"


class SyncBus:
    """One subscription surface for local mutations and cross-view storage signals.

    Local writers call :meth:`publish` synchronously before returning; the
    storage watcher publishes ``storage`` events for writes made elsewhere.
    Subscribers see both through the same callback and should re-read state
    rather than trust anything held in memory.
    """

    def __init__(self, *, history: int = 200) -> None:
        self._sequence = 0
        self._events: deque[ChangeEvent] = deque(maxlen=max(1, history))
        self._subscribers: list[tuple[Subscriber, frozenset[str] | None]] = []
        self._lock = RLock()

    def publish(
        self,
        topic: str,
        detail: Mapping[str, Any] | None = None,
        *,
        source: str = "local",
        key: str | None = None,
    ) -> ChangeEvent:
        with self._lock:
            self._sequence += 1
            event = ChangeEvent(
                sequence=self._sequence,
                topic=topic,
                source=source,
                timestamp=_utc_iso_now(),
                detail=dict(detail or {}),
                key=key,
            )
        self.dispatch(event)
        return event

    def dispatch(self, event: ChangeEvent) -> None:
        with self._lock:
            self._events.append(event)
            subscribers = tuple(self._subscribers)
        for callback, topics in subscribers:
            if topics is not None and event.topic not in topics:
                continue
            try:
                callback(event)
            except Exception as exc:
                logger.exception(
                    "bus: subscriber failed for %s", event.topic, exc_info=exc
                )

    def subscribe(
        self, callback: Subscriber, topics: Iterable[str] | None = None
    ) -> Callable[[], None]:
        entry = (callback, frozenset(topics) if topics is not None else None)
        with self._lock:
            self._subscribers.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers.remove(entry)
                except ValueError:
                    return

        return _unsubscribe

    def tail(self, *, limit: int = 50) -> tuple[ChangeEvent, ...]:
        safe_limit = max(1, int(limit))
        with self._lock:
            return tuple(self._events)[-safe_limit:]
