from __future__ import annotations

import datetime as dt
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .. import db
from ..config import RentsyncConfig, load_config
from ..kv import KeyValueStore
from ..sync import ChangeEvent, StorageWatcher, SyncBus, topics
from . import bookmarks as store_bookmarks
from . import catalog as store_catalog
from . import notes as store_notes
from . import presence as store_presence
from . import properties as store_properties
from . import status as store_status
from . import utils as store_utils
from .keys import PROPERTIES_KEY
from .types import (
    CacheEntry,
    DisplayProperty,
    NoteBlock,
    PropertyRecord,
    PropertyStatus,
    RemovedBookmark,
    StatusConfirmation,
)

MutationHook = Callable[[str, dict[str, Any]], None]


class RentStore:
    """One view onto the shared listing store.

    Several instances opened on the same database behave like browser tabs
    of the same origin: writes are visible to all of them at once, and each
    learns about the others' writes through ``storage`` events on its bus
    once :meth:`watch` is running.
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        config: RentsyncConfig | None = None,
        clock: Callable[[], float] | None = None,
        bus: SyncBus | None = None,
        seed_catalog: Iterable[Any] | None = None,
    ):
        self.config = config or load_config()
        self.db_path = Path(db_path or self.config.db_path or db.DEFAULT_DB_PATH).expanduser()
        # Watcher-thread subscribers read through this connection too.
        conn = db.connect(self.db_path, check_same_thread=False)
        db.initialize_schema(conn)
        self.kv = KeyValueStore(
            conn,
            max_value_bytes=self.config.max_value_bytes,
            change_log_limit=self.config.change_log_limit,
        )
        self.bus = bus or SyncBus()
        self._clock = clock or time.time
        if seed_catalog is None:
            self.seed_catalog = store_catalog.load_seed_catalog(self.config.catalog_path)
        else:
            self.seed_catalog = store_catalog.seed_items(seed_catalog)
        self._catalog_cache: CacheEntry | None = None
        self.session_guest_id: str | None = None
        self._watcher: StorageWatcher | None = None
        # Run in this order after every successful write.
        self.post_mutation_hooks: list[MutationHook] = [
            self._invalidate_catalog_on_property_change,
            self._publish_local,
        ]
        self._unsubscribe_storage = self.bus.subscribe(
            self._on_storage_event, topics=(topics.STORAGE,)
        )

    # -- clock -----------------------------------------------------------------

    def _now(self) -> float:
        return self._clock()

    def _now_datetime(self) -> dt.datetime:
        return dt.datetime.fromtimestamp(self._now(), dt.UTC)

    def _now_iso(self) -> str:
        return store_utils.iso_from_timestamp(self._now())

    def _now_ms(self) -> int:
        return store_utils.ms_from_timestamp(self._now())

    # -- change notification ---------------------------------------------------

    def notify(
        self,
        topic: str,
        detail: Mapping[str, Any] | None = None,
        *,
        legacy_topics: Iterable[str] = (),
    ) -> None:
        payload = dict(detail or {})
        for name in (topic, *legacy_topics):
            for hook in self.post_mutation_hooks:
                hook(name, payload)

    def _invalidate_catalog_on_property_change(self, topic: str, detail: dict[str, Any]) -> None:
        if topic in topics.PROPERTY_TOPICS:
            self.invalidate_cache()

    def _publish_local(self, topic: str, detail: dict[str, Any]) -> None:
        self.bus.publish(topic, detail)

    def _on_storage_event(self, event: ChangeEvent) -> None:
        if event.key is None or event.key == PROPERTIES_KEY:
            self.invalidate_cache()

    def subscribe(
        self, callback: Callable[[ChangeEvent], None], topics: Iterable[str] | None = None
    ) -> Callable[[], None]:
        return self.bus.subscribe(callback, topics)

    def watch(self, *, start: bool = True) -> StorageWatcher:
        if self._watcher is None:
            self._watcher = StorageWatcher(
                self.db_path,
                self.bus,
                writer_id=self.kv.writer_id,
                interval_s=self.config.watch_interval_s,
            )
        if start:
            self._watcher.start()
        return self._watcher

    # -- record repository -----------------------------------------------------

    def create_property(self, record: Mapping[str, Any]) -> PropertyRecord | None:
        return store_properties.create(self, record)

    def get_property(
        self, property_id: str, requesting_owner_id: str | None = None
    ) -> PropertyRecord | None:
        return store_properties.get_by_id(self, property_id, requesting_owner_id)

    def update_property(
        self,
        property_id: str,
        patch: Mapping[str, Any],
        requesting_user_id: str | None,
        requesting_role: str | None = None,
    ) -> bool:
        return store_properties.update(
            self, property_id, patch, requesting_user_id, requesting_role
        )

    def delete_property(self, property_id: str, requesting_user_id: str | None) -> bool:
        return store_properties.delete(self, property_id, requesting_user_id)

    def list_by_owner(self, owner_id: str) -> list[PropertyRecord]:
        return store_properties.list_by_owner(self, owner_id)

    # -- aggregation cache -----------------------------------------------------

    def get_all(self) -> tuple[DisplayProperty, ...]:
        return store_catalog.get_all(self)

    def invalidate_cache(self) -> None:
        store_catalog.invalidate(self)

    def properties_by_status(self, status: str) -> list[DisplayProperty]:
        return store_catalog.properties_by_status(self, status)

    def available_properties(self) -> list[DisplayProperty]:
        return store_catalog.properties_by_status(self, "available")

    def user_created_properties(self, owner_id: str) -> list[DisplayProperty]:
        return [store_catalog.to_display_property(r) for r in self.list_by_owner(owner_id)]

    # -- bookmarks -------------------------------------------------------------

    def bookmarked_ids(self, user_id: str | None = None) -> list[str]:
        return store_bookmarks.bookmarked_ids(self, user_id)

    def is_bookmarked(self, property_id: str, user_id: str | None = None) -> bool:
        return store_bookmarks.is_bookmarked(self, property_id, user_id)

    def add_bookmark(self, property_id: str, user_id: str | None = None) -> bool:
        return store_bookmarks.add_bookmark(self, property_id, user_id)

    def remove_bookmark(self, property_id: str, user_id: str | None = None) -> bool:
        return store_bookmarks.remove_bookmark(self, property_id, user_id)

    def restore_bookmark(self, property_id: str, user_id: str | None = None) -> bool:
        return store_bookmarks.restore_bookmark(self, property_id, user_id)

    def purge_bookmark(self, property_id: str, user_id: str | None = None) -> bool:
        return store_bookmarks.purge_bookmark(self, property_id, user_id)

    def recently_removed(self, user_id: str | None = None) -> list[RemovedBookmark]:
        return store_bookmarks.recently_removed(self, user_id)

    def bookmarked_properties(self, user_id: str | None = None) -> list[DisplayProperty]:
        return store_bookmarks.bookmarked_properties(self, user_id)

    def recently_removed_properties(self, user_id: str | None = None) -> list[DisplayProperty]:
        return store_bookmarks.recently_removed_properties(self, user_id)

    # -- status engine ---------------------------------------------------------

    def set_status(self, property_id: str, target: str, actor_id: str, actor_name: str) -> bool:
        return store_status.set_status(self, property_id, target, actor_id, actor_name)

    def get_status(self, property_id: str) -> PropertyStatus | None:
        return store_status.get_status(self, property_id)

    def follow_up_properties(self, staff_id: str | None = None) -> list[DisplayProperty]:
        if staff_id:
            return store_status.follow_up_properties_by_staff(self, staff_id)
        return store_status.follow_up_properties(self)

    def closed_properties(self, staff_id: str | None = None) -> list[DisplayProperty]:
        if staff_id:
            return store_status.closed_properties_by_staff(self, staff_id)
        return store_status.closed_properties(self)

    def confirm_status(self, property_id: str, staff_id: str, staff_name: str) -> bool:
        return store_status.confirm_status(self, property_id, staff_id, staff_name)

    def get_status_confirmation(self, property_id: str) -> StatusConfirmation | None:
        return store_status.get_status_confirmation(self, property_id)

    # -- note ledgers ----------------------------------------------------------

    def staff_notes(self, property_id: str) -> list[NoteBlock]:
        return store_notes.staff_notes(self, property_id)

    def save_staff_notes(self, property_id: str, blocks: Iterable[NoteBlock]) -> bool:
        return store_notes.save_staff_notes(self, property_id, blocks)

    def user_notes(self, user_id: str) -> list[NoteBlock]:
        return store_notes.user_notes(self, user_id)

    def save_user_notes(self, user_id: str, blocks: Iterable[NoteBlock]) -> bool:
        return store_notes.save_user_notes(self, user_id, blocks)

    def private_notes(self, user_id: str, property_id: str) -> list[NoteBlock]:
        return store_notes.private_notes(self, user_id, property_id)

    def save_private_notes(
        self, user_id: str, property_id: str, blocks: Iterable[NoteBlock]
    ) -> bool:
        return store_notes.save_private_notes(self, user_id, property_id, blocks)

    # -- presence --------------------------------------------------------------

    def online_user_count(self) -> int:
        return store_presence.online_user_count(self)

    def track_guest_visit(self) -> str | None:
        return store_presence.track_guest_visit(self)

    def close(self) -> None:
        self._unsubscribe_storage()
        if self._watcher is not None:
            self._watcher.close()
            self._watcher = None
        if self.session_guest_id:
            store_presence.mark_guest_inactive(self)
        self.kv.close()
