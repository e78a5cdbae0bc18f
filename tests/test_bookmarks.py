import json

from conftest import FakeClock

from rentsync.store import RentStore
from rentsync.sync import ChangeEvent, topics

DAY = 24 * 60 * 60


def test_add_remove_restore_round_trip(store: RentStore) -> None:
    assert store.add_bookmark("p1", "u1") is True
    assert store.remove_bookmark("p1", "u1") is True
    assert store.bookmarked_ids("u1") == []
    assert [item["propertyId"] for item in store.recently_removed("u1")] == ["p1"]

    assert store.restore_bookmark("p1", "u1") is True

    assert store.bookmarked_ids("u1") == ["p1"]
    assert store.recently_removed("u1") == []


def test_add_is_idempotent_and_clears_removed_entry(store: RentStore) -> None:
    store.add_bookmark("p1", "u1")
    store.add_bookmark("p1", "u1")
    assert store.bookmarked_ids("u1") == ["p1"]

    store.remove_bookmark("p1", "u1")
    store.add_bookmark("p1", "u1")

    assert store.bookmarked_ids("u1") == ["p1"]
    assert store.recently_removed("u1") == []


def test_purged_bookmark_never_reappears(store: RentStore, clock: FakeClock) -> None:
    store.add_bookmark("p1", "u1")
    store.remove_bookmark("p1", "u1")
    assert store.purge_bookmark("p1", "u1") is True

    store.add_bookmark("p2", "u1")
    clock.advance(5)
    store.remove_bookmark("p2", "u1")
    store.add_bookmark("p3", "u1")

    assert "p1" not in store.bookmarked_ids("u1")
    assert [item["propertyId"] for item in store.recently_removed("u1")] == ["p2"]


def test_missing_ids_are_soft_failures(store: RentStore) -> None:
    assert store.remove_bookmark("nope", "u1") is False
    assert store.restore_bookmark("nope", "u1") is False
    assert store.purge_bookmark("nope", "u1") is False


def test_removed_entries_expire_after_retention(store: RentStore, clock: FakeClock) -> None:
    store.add_bookmark("p1", "u1")
    store.remove_bookmark("p1", "u1")

    clock.advance(29 * DAY)
    assert [item["propertyId"] for item in store.recently_removed("u1")] == ["p1"]

    clock.advance(2 * DAY)
    assert store.recently_removed("u1") == []
    assert json.loads(store.kv.read("rentapp_recently_removed_bookmarks_u1")) == []


def test_removing_again_restamps_removed_at(store: RentStore, clock: FakeClock) -> None:
    store.add_bookmark("p1", "u1")
    store.remove_bookmark("p1", "u1")
    first = store.recently_removed("u1")[0]["removedAt"]

    clock.advance(20 * DAY)
    assert store.remove_bookmark("p1", "u1") is True
    clock.advance(20 * DAY)

    entries = store.recently_removed("u1")
    assert [item["propertyId"] for item in entries] == ["p1"]
    assert entries[0]["removedAt"] != first


def test_recently_removed_most_recent_first(store: RentStore, clock: FakeClock) -> None:
    for pid in ("p1", "p2", "p3"):
        store.add_bookmark(pid, "u1")
    for pid in ("p1", "p3", "p2"):
        clock.advance(60)
        store.remove_bookmark(pid, "u1")

    assert [item["propertyId"] for item in store.recently_removed("u1")] == ["p2", "p3", "p1"]


def test_unparseable_removed_at_is_dropped(store: RentStore) -> None:
    store.kv.write(
        "rentapp_recently_removed_bookmarks_u1",
        json.dumps([{"propertyId": "p1", "removedAt": "yesterday-ish"}]),
    )

    assert store.recently_removed("u1") == []


def test_guest_and_users_are_separate(store: RentStore) -> None:
    store.add_bookmark("p1")
    store.add_bookmark("p2", "u1")

    assert store.bookmarked_ids() == ["p1"]
    assert store.bookmarked_ids("u1") == ["p2"]
    assert json.loads(store.kv.read("rentapp_bookmarks_guest")) == ["p1"]


def test_bookmark_changes_are_published(store: RentStore) -> None:
    seen: list[ChangeEvent] = []
    store.subscribe(seen.append, topics=[topics.BOOKMARKS_CHANGED])

    store.add_bookmark("p1", "u1")
    store.add_bookmark("p1", "u1")
    store.remove_bookmark("p1", "u1")
    store.restore_bookmark("p1", "u1")

    assert [event.detail["op"] for event in seen] == ["add", "remove", "restore"]
    assert all(event.detail["userId"] == "u1" for event in seen)
    assert not any(event.is_remote for event in seen)


def test_bookmarked_properties_resolve_through_catalog(store: RentStore) -> None:
    store.create_property({"ownerId": "owner", "id": "p1"})
    store.add_bookmark("p1", "u1")
    store.add_bookmark("ghost", "u1")

    assert [prop.id for prop in store.bookmarked_properties("u1")] == ["p1"]


def test_removed_properties_and_membership(store: RentStore) -> None:
    store.create_property({"ownerId": "owner", "id": "p1"})
    store.add_bookmark("p1", "u1")
    assert store.is_bookmarked("p1", "u1") is True

    store.remove_bookmark("p1", "u1")

    assert store.is_bookmarked("p1", "u1") is False
    assert [prop.id for prop in store.recently_removed_properties("u1")] == ["p1"]
