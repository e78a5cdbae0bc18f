from __future__ import annotations

from . import topics
from .bus import ChangeEvent, SyncBus
from .watcher import StorageWatcher

__all__ = ["ChangeEvent", "StorageWatcher", "SyncBus", "topics"]
