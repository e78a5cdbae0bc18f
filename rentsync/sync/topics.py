from __future__ import annotations

from typing import Final

PROPERTY_CREATED: Final = "propertyCreated"
PROPERTY_UPDATED: Final = "propertyUpdated"
PROPERTY_DELETED: Final = "propertyDeleted"
PROPERTY_TOPICS: Final[frozenset[str]] = frozenset(
    {PROPERTY_CREATED, PROPERTY_UPDATED, PROPERTY_DELETED}
)

BOOKMARKS_CHANGED: Final = "bookmarksChanged"

STATUS_CHANGED: Final = "propertyStatusChanged"
# Older listeners only know these two; status changes still announce them.
FOLLOW_UP_CHANGED: Final = "followUpChanged"
CLOSED_CHANGED: Final = "closedChanged"
STATUS_CONFIRMATION_CHANGED: Final = "statusConfirmationChanged"

NOTES_CHANGED: Final = "notesChanged"
USER_NOTES_CHANGED: Final = "userNotesChanged"
PRIVATE_NOTES_CHANGED: Final = "privateNotesChanged"

PRESENCE_CHANGED: Final = "presenceChanged"
SETTINGS_CHANGED: Final = "settingsChanged"

# Fired for writes made by another view on the same store.
STORAGE: Final = "storage"
