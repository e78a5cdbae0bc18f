from __future__ import annotations

import threading

from rich import print

from rentsync.sync import ChangeEvent


def format_event(event: ChangeEvent) -> str:
    origin = "[cyan]storage[/cyan]" if event.is_remote else "[green]local[/green]"
    target = f" key={event.key}" if event.key else ""
    detail = " ".join(f"{name}={value}" for name, value in sorted(event.detail.items()))
    return f"{event.timestamp} {origin} {event.topic}{target} {detail}".rstrip()


def watch_cmd(
    *,
    store_from_path,
    db_path: str | None,
    duration: float,
    stop_event: threading.Event | None = None,
) -> None:
    """Print change events until interrupted, or for ``duration`` seconds when positive."""

    store = store_from_path(db_path)
    stop = stop_event or threading.Event()
    unsubscribe = store.subscribe(lambda event: print(format_event(event)))
    try:
        watcher = store.watch()
        print(f"Watching {store.db_path} every {watcher.interval_s}s (Ctrl-C to stop)")
        try:
            stop.wait(duration if duration > 0 else None)
        except KeyboardInterrupt:
            print("Stopped")
    finally:
        unsubscribe()
        store.close()
