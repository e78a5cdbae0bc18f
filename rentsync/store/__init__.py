from __future__ import annotations

from ._store import RentStore
from .types import (
    DisplayProperty,
    NoteBlock,
    PropertyRecord,
    PropertyStatus,
    RemovedBookmark,
    StatusConfirmation,
)

__all__ = [
    "DisplayProperty",
    "NoteBlock",
    "PropertyRecord",
    "PropertyStatus",
    "RemovedBookmark",
    "RentStore",
    "StatusConfirmation",
]
