from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from .. import codec
from ..kv import StoreWriteError
from ..sync import topics
from .keys import ACTIVE_SESSIONS_KEY, GUEST_USERS_KEY, STAFF_ENROLLMENT_KEY
from .types import ActiveSession, GuestUser

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)


def _write(store: RentStore, key: str, value: object) -> bool:
    try:
        codec.write(store.kv, key, value)
    except StoreWriteError as exc:
        logger.error("presence: write failed for %s", key, exc_info=exc)
        return False
    return True


def active_sessions(store: RentStore) -> list[ActiveSession]:
    now_ms = store._now_ms()
    timeout_ms = store.config.session_timeout_s * 1000
    sessions = codec.decode(store.kv, ACTIVE_SESSIONS_KEY, [])
    return [
        session
        for session in sessions
        if isinstance(session, dict)
        and isinstance(session.get("timestamp"), int | float)
        and now_ms - session["timestamp"] < timeout_ms
    ]


def add_active_session(store: RentStore, user_id: str, role: str = "user") -> bool:
    sessions = [s for s in active_sessions(store) if s.get("userId") != user_id]
    sessions.append({"userId": user_id, "role": role, "timestamp": store._now_ms()})
    if not _write(store, ACTIVE_SESSIONS_KEY, sessions):
        return False
    store.notify(topics.PRESENCE_CHANGED, {"userId": user_id, "op": "online"})
    return True


def remove_active_session(store: RentStore, user_id: str | None) -> bool:
    if not user_id:
        return False
    sessions = [s for s in active_sessions(store) if s.get("userId") != user_id]
    if not _write(store, ACTIVE_SESSIONS_KEY, sessions):
        return False
    store.notify(topics.PRESENCE_CHANGED, {"userId": user_id, "op": "offline"})
    return True


def online_user_count(store: RentStore) -> int:
    return len(active_sessions(store))


def clear_sessions(store: RentStore) -> bool:
    try:
        store.kv.remove(ACTIVE_SESSIONS_KEY)
    except StoreWriteError as exc:
        logger.error("presence: could not clear sessions", exc_info=exc)
        return False
    store.notify(topics.PRESENCE_CHANGED, {"op": "clear"})
    return True


def guest_users(store: RentStore) -> list[GuestUser]:
    guests = codec.decode(store.kv, GUEST_USERS_KEY, [])
    return [guest for guest in guests if isinstance(guest, dict) and guest.get("id")]


def active_guest_count(store: RentStore) -> int:
    return sum(1 for guest in guest_users(store) if guest.get("isActive"))


def track_guest_visit(store: RentStore) -> str | None:
    """Mark this view's guest active, reusing a guest who left within the reuse window."""

    guests = guest_users(store)
    now_ms = store._now_ms()
    current = next((g for g in guests if g["id"] == store.session_guest_id), None)
    if current is None:
        reuse_ms = store.config.guest_reuse_window_s * 1000
        inactive = sorted(
            (g for g in guests if not g.get("isActive")),
            key=lambda g: g.get("lastVisit", 0),
            reverse=True,
        )
        if inactive and now_ms - inactive[0].get("lastVisit", 0) < reuse_ms:
            current = inactive[0]
        else:
            current = {
                "id": f"guest_{now_ms}_{uuid4().hex[:9]}",
                "firstVisit": now_ms,
                "lastVisit": now_ms,
                "isActive": True,
            }
            guests.append(current)
        store.session_guest_id = current["id"]
    current["lastVisit"] = now_ms
    current["isActive"] = True
    if not _write(store, GUEST_USERS_KEY, guests):
        return None
    return current["id"]


def mark_guest_inactive(store: RentStore) -> bool:
    if not store.session_guest_id:
        return False
    guests = guest_users(store)
    guest = next((g for g in guests if g["id"] == store.session_guest_id), None)
    if guest is None or not guest.get("isActive"):
        return False
    guest["isActive"] = False
    guest["lastVisit"] = store._now_ms()
    return _write(store, GUEST_USERS_KEY, guests)


def staff_enrollment_enabled(store: RentStore) -> bool:
    return store.kv.read(STAFF_ENROLLMENT_KEY) == "true"


def set_staff_enrollment(store: RentStore, enabled: bool) -> bool:
    try:
        store.kv.write(STAFF_ENROLLMENT_KEY, "true" if enabled else "false")
    except StoreWriteError as exc:
        logger.error("presence: could not save staff enrollment", exc_info=exc)
        return False
    store.notify(topics.SETTINGS_CHANGED, {"staffEnrollmentEnabled": enabled})
    return True


def toggle_staff_enrollment(store: RentStore) -> bool:
    enabled = not staff_enrollment_enabled(store)
    set_staff_enrollment(store, enabled)
    return enabled
