from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from .. import codec
from ..kv import StoreWriteError
from ..sync import topics
from .keys import (
    NOTES_PREFIX,
    is_private_notes_key,
    private_notes_key,
    staff_notes_key,
    user_notes_key,
)
from .types import NoteBlock

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)

SHARED_LEGACY_EDITOR = "Unknown"
PRIVATE_LEGACY_EDITOR = "You"


def generate_block_id(now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"block_{stamp}_{uuid4().hex[:7]}"


def new_block(editor_name: str, now_ms: int, content: str = "") -> NoteBlock:
    return {
        "block_id": generate_block_id(now_ms),
        "content": content,
        "last_editor_name": editor_name,
        "last_edited_at": now_ms,
    }


def _coerce_block(value: Any) -> NoteBlock | None:
    if not isinstance(value, dict):
        return None
    block_id = value.get("block_id")
    if not isinstance(block_id, str) or not block_id:
        return None
    edited_at = value.get("last_edited_at")
    return {
        "block_id": block_id,
        "content": str(value.get("content") or ""),
        "last_editor_name": str(value.get("last_editor_name") or SHARED_LEGACY_EDITOR),
        "last_edited_at": int(edited_at) if isinstance(edited_at, int | float) else 0,
    }


def load_blocks(
    store: RentStore, key: str, *, legacy_editor: str = SHARED_LEGACY_EDITOR
) -> list[NoteBlock]:
    """Read a ledger, migrating the older single-text forms into one block."""

    raw = store.kv.read(key)
    if raw is None or not raw.strip():
        return []
    parsed = codec.decode_raw(raw)
    if isinstance(parsed, dict):
        blocks = parsed.get("blocks")
        if isinstance(blocks, list):
            coerced = (_coerce_block(item) for item in blocks)
            return [block for block in coerced if block is not None]
        if "notes" in parsed:
            edited = parsed.get("lastEdited")
            return [
                new_block(
                    legacy_editor,
                    int(edited) if isinstance(edited, int | float) else store._now_ms(),
                    str(parsed.get("notes") or ""),
                )
            ]
        return []
    # Plain text from before notes were split into blocks.
    return [new_block(legacy_editor, store._now_ms(), raw)]


def save_blocks(store: RentStore, key: str, blocks: Iterable[NoteBlock]) -> bool:
    try:
        codec.write(store.kv, key, {"blocks": list(blocks)})
    except StoreWriteError as exc:
        logger.error("notes: save failed for %s", key, exc_info=exc)
        return False
    return True


def drop_empty_blocks(blocks: Iterable[NoteBlock]) -> list[NoteBlock]:
    return [block for block in blocks if block["content"].strip()]


def has_content(blocks: Iterable[NoteBlock]) -> bool:
    return any(block["content"].strip() for block in blocks)


def edit_block(
    blocks: Iterable[NoteBlock],
    block_id: str,
    content: str,
    editor_name: str,
    now_ms: int,
) -> list[NoteBlock]:
    """Return a copy of ``blocks`` with only ``block_id`` rewritten and re-attributed."""

    edited: list[NoteBlock] = []
    for block in blocks:
        if block["block_id"] == block_id:
            block = {
                **block,
                "content": content,
                "last_editor_name": editor_name,
                "last_edited_at": now_ms,
            }
        edited.append(block)
    return edited


def format_time_ago(timestamp_ms: int, now_ms: int, *, short: bool = False) -> str:
    diff = max(0, now_ms - timestamp_ms)
    days = diff // 86_400_000
    hours = diff // 3_600_000
    minutes = diff // 60_000
    if days > 0:
        return f"{days}d" if short else f"{days}d ago"
    if hours > 0:
        return f"{hours}h" if short else f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m" if short else f"{minutes}m ago"
    return "now" if short else "just now"


def _save_scope(
    store: RentStore,
    key: str,
    blocks: Iterable[NoteBlock],
    topic: str,
    detail: dict[str, Any],
) -> bool:
    if not save_blocks(store, key, drop_empty_blocks(blocks)):
        return False
    store.notify(topic, detail)
    return True


def staff_notes(store: RentStore, property_id: str) -> list[NoteBlock]:
    return load_blocks(store, staff_notes_key(property_id))


def save_staff_notes(store: RentStore, property_id: str, blocks: Iterable[NoteBlock]) -> bool:
    return _save_scope(
        store,
        staff_notes_key(property_id),
        blocks,
        topics.NOTES_CHANGED,
        {"propertyId": property_id},
    )


def user_notes(store: RentStore, user_id: str) -> list[NoteBlock]:
    return load_blocks(store, user_notes_key(user_id))


def save_user_notes(store: RentStore, user_id: str, blocks: Iterable[NoteBlock]) -> bool:
    return _save_scope(
        store, user_notes_key(user_id), blocks, topics.USER_NOTES_CHANGED, {"userId": user_id}
    )


def private_notes(store: RentStore, user_id: str, property_id: str) -> list[NoteBlock]:
    return load_blocks(
        store, private_notes_key(user_id, property_id), legacy_editor=PRIVATE_LEGACY_EDITOR
    )


def save_private_notes(
    store: RentStore, user_id: str, property_id: str, blocks: Iterable[NoteBlock]
) -> bool:
    return _save_scope(
        store,
        private_notes_key(user_id, property_id),
        blocks,
        topics.PRIVATE_NOTES_CHANGED,
        {"propertyId": property_id, "userId": user_id},
    )


def _ledger_text(blocks: Iterable[NoteBlock]) -> str:
    return "\n".join(block["content"] for block in blocks if block["content"].strip())


def property_notes_any_user(store: RentStore, property_id: str) -> str:
    """Shared staff notes for a property, else the first private ledger with content."""

    shared = _ledger_text(staff_notes(store, property_id))
    if shared:
        return shared
    for key in store.kv.keys(NOTES_PREFIX):
        if not is_private_notes_key(key, property_id):
            continue
        text = _ledger_text(load_blocks(store, key, legacy_editor=PRIVATE_LEGACY_EDITOR))
        if text:
            return text
    return ""
