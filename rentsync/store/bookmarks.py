from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING

from .. import codec
from ..kv import StoreWriteError
from ..sync import topics
from . import catalog as store_catalog
from . import utils as store_utils
from .keys import bookmarks_key, recently_removed_key
from .types import DisplayProperty, RemovedBookmark

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)


def _active(store: RentStore, user_id: str | None) -> list[str]:
    ids = codec.decode(store.kv, bookmarks_key(user_id), [])
    seen: list[str] = []
    for value in ids:
        if isinstance(value, str) and value and value not in seen:
            seen.append(value)
    return seen


def _removed(store: RentStore, user_id: str | None) -> list[RemovedBookmark]:
    items = codec.decode(store.kv, recently_removed_key(user_id), [])
    entries: list[RemovedBookmark] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        property_id = item.get("propertyId")
        removed_at = item.get("removedAt")
        if isinstance(property_id, str) and property_id and isinstance(removed_at, str):
            entries.append({"propertyId": property_id, "removedAt": removed_at})
    return entries


def _write(store: RentStore, key: str, value: object) -> bool:
    try:
        codec.write(store.kv, key, value)
    except StoreWriteError as exc:
        logger.error("bookmarks: write failed for %s", key, exc_info=exc)
        return False
    return True


def _announce(store: RentStore, user_id: str | None, property_id: str | None, op: str) -> None:
    store.notify(
        topics.BOOKMARKS_CHANGED,
        {"userId": user_id, "propertyId": property_id, "op": op},
    )


def bookmarked_ids(store: RentStore, user_id: str | None = None) -> list[str]:
    return _active(store, user_id)


def is_bookmarked(store: RentStore, property_id: str, user_id: str | None = None) -> bool:
    return property_id in _active(store, user_id)


def add_bookmark(store: RentStore, property_id: str, user_id: str | None = None) -> bool:
    active = _active(store, user_id)
    removed = _removed(store, user_id)
    still_removed = [item for item in removed if item["propertyId"] != property_id]
    if property_id in active and len(still_removed) == len(removed):
        return True
    if property_id not in active:
        active.append(property_id)
        if not _write(store, bookmarks_key(user_id), active):
            return False
    if len(still_removed) != len(removed):
        if not _write(store, recently_removed_key(user_id), still_removed):
            return False
    _announce(store, user_id, property_id, "add")
    return True


def remove_bookmark(store: RentStore, property_id: str, user_id: str | None = None) -> bool:
    """Move an active bookmark to the removed list, or re-stamp one already there."""

    active = _active(store, user_id)
    removed = _removed(store, user_id)
    was_active = property_id in active
    was_removed = any(item["propertyId"] == property_id for item in removed)
    if not was_active and not was_removed:
        return False

    if was_active:
        active = [value for value in active if value != property_id]
        if not _write(store, bookmarks_key(user_id), active):
            return False
    entries = [item for item in removed if item["propertyId"] != property_id]
    entries.append({"propertyId": property_id, "removedAt": store._now_iso()})
    if not _write(store, recently_removed_key(user_id), entries):
        return False
    _announce(store, user_id, property_id, "remove")
    return True


def restore_bookmark(store: RentStore, property_id: str, user_id: str | None = None) -> bool:
    removed = _removed(store, user_id)
    remaining = [item for item in removed if item["propertyId"] != property_id]
    if len(remaining) == len(removed):
        return False
    active = _active(store, user_id)
    if property_id not in active:
        active.append(property_id)
        if not _write(store, bookmarks_key(user_id), active):
            return False
    if not _write(store, recently_removed_key(user_id), remaining):
        return False
    _announce(store, user_id, property_id, "restore")
    return True


def purge_bookmark(store: RentStore, property_id: str, user_id: str | None = None) -> bool:
    removed = _removed(store, user_id)
    remaining = [item for item in removed if item["propertyId"] != property_id]
    if len(remaining) == len(removed):
        return False
    if not _write(store, recently_removed_key(user_id), remaining):
        return False
    _announce(store, user_id, property_id, "purge")
    return True


def _is_expired(item: RemovedBookmark, cutoff: dt.datetime) -> bool:
    removed_at = store_utils.parse_iso8601(item["removedAt"])
    # Unparseable stamps count as expired.
    return removed_at is None or removed_at < cutoff


def recently_removed(store: RentStore, user_id: str | None = None) -> list[RemovedBookmark]:
    """Return removed bookmarks, most recent first, purging any past retention."""

    removed = _removed(store, user_id)
    active = set(_active(store, user_id))
    retention = dt.timedelta(days=store.config.bookmark_retention_days)
    cutoff = store._now_datetime() - retention
    kept = [
        item
        for item in removed
        if item["propertyId"] not in active and not _is_expired(item, cutoff)
    ]
    if len(kept) != len(removed):
        logger.info(
            "bookmarks: purging %d removed entries for %s",
            len(removed) - len(kept),
            user_id or "guest",
        )
        if _write(store, recently_removed_key(user_id), kept):
            _announce(store, user_id, None, "expire")
    return sorted(
        kept, key=lambda item: store_utils.recency(item["removedAt"], None), reverse=True
    )


def recently_removed_ids(store: RentStore, user_id: str | None = None) -> list[str]:
    return [item["propertyId"] for item in recently_removed(store, user_id)]


def bookmarked_properties(store: RentStore, user_id: str | None = None) -> list[DisplayProperty]:
    return store_catalog.by_ids(store, _active(store, user_id))


def recently_removed_properties(
    store: RentStore, user_id: str | None = None
) -> list[DisplayProperty]:
    return store_catalog.by_ids(store, recently_removed_ids(store, user_id))
