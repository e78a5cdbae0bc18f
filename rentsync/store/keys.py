from __future__ import annotations

from typing import Final

PROPERTIES_KEY: Final = "rentapp_properties"
PROPERTY_STATUS_KEY: Final = "rentapp_property_status"
STATUS_CONFIRMATIONS_KEY: Final = "rentapp_status_confirmations"
ACTIVE_SESSIONS_KEY: Final = "rentapp_active_sessions"
GUEST_USERS_KEY: Final = "rentapp_guest_users"
STAFF_ENROLLMENT_KEY: Final = "rentapp_staff_enrollment_enabled"

BOOKMARKS_PREFIX: Final = "rentapp_bookmarks_"
RECENTLY_REMOVED_PREFIX: Final = "rentapp_recently_removed_bookmarks_"
STAFF_NOTES_PREFIX: Final = "rentapp_notes_staff_"
USER_NOTES_PREFIX: Final = "rentapp_user_notes_staff_"
NOTES_PREFIX: Final = "rentapp_notes_"
LEGACY_FOLLOW_UP_PREFIX: Final = "rentapp_followup"
LEGACY_CLOSED_PREFIX: Final = "rentapp_closed"

GUEST: Final = "guest"


def bookmarks_key(user_id: str | None) -> str:
    return f"{BOOKMARKS_PREFIX}{user_id or GUEST}"


def recently_removed_key(user_id: str | None) -> str:
    return f"{RECENTLY_REMOVED_PREFIX}{user_id or GUEST}"


def staff_notes_key(property_id: str) -> str:
    return f"{STAFF_NOTES_PREFIX}{property_id}"


def user_notes_key(user_id: str) -> str:
    return f"{USER_NOTES_PREFIX}{user_id}"


def private_notes_key(user_id: str, property_id: str) -> str:
    return f"{NOTES_PREFIX}{user_id}_{property_id}"


def is_private_notes_key(key: str, property_id: str) -> bool:
    return (
        key.startswith(NOTES_PREFIX)
        and not key.startswith(STAFF_NOTES_PREFIX)
        and key.endswith(f"_{property_id}")
    )
