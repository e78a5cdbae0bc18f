from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from .. import codec
from ..kv import QuotaExceededError, StoreWriteError
from ..sync import topics
from . import utils as store_utils
from .keys import PROPERTIES_KEY
from .types import PropertyRecord

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
# Fields an update can never change.
PRESERVED_FIELDS = ("id", "ownerId", "ownerEmail", "ownerName", "createdAt")
QUOTA_RETAIN_RECORDS = 10


def new_property_id() -> str:
    return uuid4().hex


def load_records(store: RentStore) -> list[PropertyRecord]:
    records = codec.decode(store.kv, PROPERTIES_KEY, [])
    return [r for r in records if isinstance(r, dict) and r.get("id")]


def _find(records: list[PropertyRecord], property_id: str) -> int:
    for index, record in enumerate(records):
        if str(record.get("id")) == property_id:
            return index
    return -1


def _save_records(store: RentStore, records: list[PropertyRecord]) -> bool:
    try:
        codec.write(store.kv, PROPERTIES_KEY, records)
    except StoreWriteError as exc:
        logger.error("properties: save failed", exc_info=exc)
        return False
    return True


def create(store: RentStore, record: Mapping[str, Any]) -> PropertyRecord | None:
    owner_id = str(record.get("ownerId") or "").strip()
    if not owner_id:
        logger.warning("properties: create rejected, missing ownerId")
        return None
    records = load_records(store)
    property_id = str(record.get("id") or "").strip() or new_property_id()
    if _find(records, property_id) != -1:
        logger.warning("properties: create rejected, duplicate id %s", property_id)
        return None

    now = store._now_iso()
    created: PropertyRecord = {
        **record,
        "id": property_id,
        "ownerId": owner_id,
        "createdAt": now,
        "updatedAt": now,
    }
    size = len(codec.encode(created).encode("utf-8"))
    if size > store.config.max_record_bytes and created.get("images"):
        logger.warning(
            "properties: record %s is %d bytes, dropping images", property_id, size
        )
        created["images"] = []

    try:
        codec.write(store.kv, PROPERTIES_KEY, [*records, created])
    except QuotaExceededError as exc:
        logger.warning(
            "properties: quota exceeded, keeping newest %d records",
            QUOTA_RETAIN_RECORDS,
            exc_info=exc,
        )
        trimmed = [*records[-QUOTA_RETAIN_RECORDS:], created]
        if not _save_records(store, trimmed):
            return None
    except StoreWriteError as exc:
        logger.error("properties: create failed for %s", property_id, exc_info=exc)
        return None

    store.notify(topics.PROPERTY_CREATED, {"propertyId": property_id, "op": "create"})
    return dict(created)


def get_by_id(
    store: RentStore, property_id: str, requesting_owner_id: str | None = None
) -> PropertyRecord | None:
    records = load_records(store)
    index = _find(records, property_id)
    if index == -1:
        return None
    record = records[index]
    owner_id = record.get("ownerId")
    if requesting_owner_id and owner_id and owner_id != requesting_owner_id:
        logger.warning("properties: %s is owned by another user", property_id)
        return None
    return dict(record)


def update(
    store: RentStore,
    property_id: str,
    patch: Mapping[str, Any],
    requesting_user_id: str | None,
    requesting_role: str | None = None,
) -> bool:
    records = load_records(store)
    index = _find(records, property_id)
    if index == -1:
        logger.warning("properties: update of unknown property %s", property_id)
        return False
    existing = records[index]
    owner_id = existing.get("ownerId")
    if requesting_role != ADMIN_ROLE and owner_id and owner_id != requesting_user_id:
        logger.warning(
            "properties: %s not authorized to update %s", requesting_user_id, property_id
        )
        return False

    merged: PropertyRecord = {**existing, **patch}
    for name in PRESERVED_FIELDS:
        if name in existing:
            merged[name] = existing[name]
        else:
            merged.pop(name, None)
    merged["updatedAt"] = store_utils.advance_iso(
        existing.get("updatedAt") or existing.get("createdAt"), store._now_iso()
    )
    records[index] = merged
    if not _save_records(store, records):
        return False
    store.notify(topics.PROPERTY_UPDATED, {"propertyId": property_id, "op": "update"})
    return True


def delete(store: RentStore, property_id: str, requesting_user_id: str | None) -> bool:
    records = load_records(store)
    index = _find(records, property_id)
    if index == -1:
        logger.warning("properties: delete of unknown property %s", property_id)
        return False
    owner_id = records[index].get("ownerId")
    if owner_id and owner_id != requesting_user_id:
        logger.warning(
            "properties: %s not authorized to delete %s", requesting_user_id, property_id
        )
        return False
    del records[index]
    if not _save_records(store, records):
        return False
    store.notify(topics.PROPERTY_DELETED, {"propertyId": property_id, "op": "delete"})
    return True


def list_by_owner(store: RentStore, owner_id: str) -> list[PropertyRecord]:
    if not owner_id:
        return []
    owned = [dict(r) for r in load_records(store) if r.get("ownerId") == owner_id]
    return sorted(owned, key=store_utils.record_recency, reverse=True)
