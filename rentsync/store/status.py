from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from .. import codec
from ..kv import StoreWriteError
from ..sync import topics
from . import catalog as store_catalog
from . import notes as store_notes
from .keys import (
    LEGACY_CLOSED_PREFIX,
    LEGACY_FOLLOW_UP_PREFIX,
    NOTES_PREFIX,
    PROPERTY_STATUS_KEY,
    STAFF_NOTES_PREFIX,
    STATUS_CONFIRMATIONS_KEY,
)
from .types import DisplayProperty, PropertyStatus, StatusConfirmation

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)

DEFAULT: Final = "default"
FOLLOW_UP: Final = "followup"
CLOSED: Final = "closed"
STATES: Final[tuple[str, ...]] = (DEFAULT, FOLLOW_UP, CLOSED)


def _raw_statuses(store: RentStore) -> dict[str, Any]:
    return codec.decode(store.kv, PROPERTY_STATUS_KEY, {})


def status_map(store: RentStore) -> dict[str, PropertyStatus]:
    """Readable view of the shared status record; entries it cannot use are skipped."""

    raw = _raw_statuses(store)
    statuses: dict[str, PropertyStatus] = {}
    for property_id, value in raw.items():
        if not isinstance(value, dict) or value.get("status") not in STATES:
            continue
        actor = value.get("updatedBy")
        if not isinstance(actor, dict):
            actor = {}
        updated_at = value.get("updatedAt")
        statuses[property_id] = {
            "status": value["status"],
            "updatedAt": int(updated_at) if isinstance(updated_at, int | float) else 0,
            "updatedBy": {
                "id": str(actor.get("id") or ""),
                "name": str(actor.get("name") or ""),
            },
        }
    return statuses


def get_status(store: RentStore, property_id: str) -> PropertyStatus | None:
    return status_map(store).get(property_id)


def state_of(store: RentStore, property_id: str) -> str:
    status = get_status(store, property_id)
    return status["status"] if status else DEFAULT


def set_status(
    store: RentStore, property_id: str, target: str, actor_id: str, actor_name: str
) -> bool:
    """Overwrite the single shared status record for a property.

    Any state may move to any other, including itself. The record is global,
    so a later writer silently replaces an earlier one.
    """

    if target not in STATES:
        logger.warning("status: unknown state %r for %s", target, property_id)
        return False
    # Only this property's entry is replaced; siblings are written back as stored.
    statuses = _raw_statuses(store)
    statuses[property_id] = {
        "status": target,
        "updatedAt": store._now_ms(),
        "updatedBy": {"id": actor_id, "name": actor_name},
    }
    try:
        codec.write(store.kv, PROPERTY_STATUS_KEY, statuses)
    except StoreWriteError as exc:
        logger.error("status: save failed for %s", property_id, exc_info=exc)
        return False
    store.notify(
        topics.STATUS_CHANGED,
        {"propertyId": property_id, "status": target},
        legacy_topics=(topics.FOLLOW_UP_CHANGED, topics.CLOSED_CHANGED),
    )
    return True


def _staff_transition(
    store: RentStore,
    property_id: str,
    target: str,
    actor_id: str | None,
    actor_name: str | None,
) -> bool:
    if not actor_id or not actor_name:
        return False
    return set_status(store, property_id, target, actor_id, actor_name)


def add_to_follow_up(
    store: RentStore, property_id: str, actor_id: str | None, actor_name: str | None
) -> bool:
    return _staff_transition(store, property_id, FOLLOW_UP, actor_id, actor_name)


def remove_from_follow_up(
    store: RentStore, property_id: str, actor_id: str | None, actor_name: str | None
) -> bool:
    return _staff_transition(store, property_id, DEFAULT, actor_id, actor_name)


def add_to_closed(
    store: RentStore, property_id: str, actor_id: str | None, actor_name: str | None
) -> bool:
    return _staff_transition(store, property_id, CLOSED, actor_id, actor_name)


def remove_from_closed(
    store: RentStore, property_id: str, actor_id: str | None, actor_name: str | None
) -> bool:
    return _staff_transition(store, property_id, DEFAULT, actor_id, actor_name)


def ids_in_state(store: RentStore, state: str) -> list[str]:
    return [pid for pid, status in status_map(store).items() if status["status"] == state]


def follow_up_ids(store: RentStore) -> list[str]:
    return ids_in_state(store, FOLLOW_UP)


def closed_ids(store: RentStore) -> list[str]:
    return ids_in_state(store, CLOSED)


def is_follow_up(store: RentStore, property_id: str) -> bool:
    return state_of(store, property_id) == FOLLOW_UP


def is_closed(store: RentStore, property_id: str) -> bool:
    return state_of(store, property_id) == CLOSED


def follow_up_properties(store: RentStore) -> list[DisplayProperty]:
    return store_catalog.by_ids(store, follow_up_ids(store))


def closed_properties(store: RentStore) -> list[DisplayProperty]:
    return store_catalog.by_ids(store, closed_ids(store))


def follow_up_properties_by_staff(store: RentStore, staff_id: str) -> list[DisplayProperty]:
    """Follow-ups this staff member set, plus any follow-up whose shared notes have content.

    The second half means a property can show up here because someone left a
    note on it, even though another staff member made the transition.
    """

    statuses = status_map(store)
    matches: list[DisplayProperty] = []
    for prop in store_catalog.get_all(store):
        status = statuses.get(prop.id)
        if status is None or status["status"] != FOLLOW_UP:
            continue
        if status["updatedBy"]["id"] == staff_id:
            matches.append(prop)
            continue
        if store_notes.has_content(store_notes.staff_notes(store, prop.id)):
            matches.append(prop)
    return matches


def closed_properties_by_staff(store: RentStore, staff_id: str) -> list[DisplayProperty]:
    statuses = status_map(store)
    return [
        prop
        for prop in store_catalog.get_all(store)
        if (status := statuses.get(prop.id)) is not None
        and status["status"] == CLOSED
        and status["updatedBy"]["id"] == staff_id
    ]


def _confirmations(store: RentStore) -> list[StatusConfirmation]:
    items = codec.decode(store.kv, STATUS_CONFIRMATIONS_KEY, [])
    return [item for item in items if isinstance(item, dict) and item.get("propertyId")]


def confirm_status(store: RentStore, property_id: str, staff_id: str, staff_name: str) -> bool:
    confirmations = [c for c in _confirmations(store) if c["propertyId"] != property_id]
    confirmations.append(
        {
            "propertyId": property_id,
            "staffId": staff_id,
            "staffName": staff_name,
            "confirmedAt": store._now_iso(),
        }
    )
    try:
        codec.write(store.kv, STATUS_CONFIRMATIONS_KEY, confirmations)
    except StoreWriteError as exc:
        logger.error("status: confirmation save failed for %s", property_id, exc_info=exc)
        return False
    store.notify(topics.STATUS_CONFIRMATION_CHANGED, {"propertyId": property_id})
    return True


def get_status_confirmation(store: RentStore, property_id: str) -> StatusConfirmation | None:
    for confirmation in _confirmations(store):
        if confirmation["propertyId"] == property_id:
            return confirmation
    return None


def clear_legacy_workflow(store: RentStore, user_id: str | None = None) -> int:
    """Drop per-user follow-up/closed keys from before status became shared."""

    doomed = [
        *store.kv.keys(LEGACY_FOLLOW_UP_PREFIX),
        *store.kv.keys(LEGACY_CLOSED_PREFIX),
    ]
    if user_id:
        # "staff" would otherwise match the shared staff ledgers.
        doomed.extend(
            key
            for key in store.kv.keys(f"{NOTES_PREFIX}{user_id}_")
            if not key.startswith(STAFF_NOTES_PREFIX)
        )
    cleared = 0
    for key in doomed:
        try:
            store.kv.remove(key)
        except StoreWriteError as exc:
            logger.warning("status: could not clear %s", key, exc_info=exc)
            continue
        cleared += 1
    logger.info("status: cleared %d legacy workflow keys", cleared)
    store.notify(topics.FOLLOW_UP_CHANGED, {"cleared": cleared})
    store.notify(topics.CLOSED_CHANGED, {"cleared": cleared})
    return cleared
