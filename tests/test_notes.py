import json

from conftest import FakeClock

from rentsync.store import RentStore
from rentsync.store import notes as store_notes
from rentsync.sync import ChangeEvent, topics


def test_saving_drops_empty_blocks(store: RentStore) -> None:
    now = store._now_ms()
    blank = store_notes.new_block("Asha", now, "   ")
    kept = store_notes.new_block("Asha", now, "Viewing booked for Friday")

    assert store.save_staff_notes("p1", [blank, kept]) is True

    stored = json.loads(store.kv.read("rentapp_notes_staff_p1"))
    assert [block["block_id"] for block in stored["blocks"]] == [kept["block_id"]]
    assert store.staff_notes("p1") == [kept]


def test_plain_text_ledger_becomes_one_block(store: RentStore) -> None:
    store.kv.write("rentapp_notes_staff_p1", "Tenant asked about parking")

    blocks = store.staff_notes("p1")

    assert len(blocks) == 1
    assert blocks[0]["content"] == "Tenant asked about parking"
    assert blocks[0]["last_editor_name"] == "Unknown"
    assert blocks[0]["block_id"].startswith("block_")


def test_legacy_private_ledger_keeps_edit_time(store: RentStore) -> None:
    store.kv.write("rentapp_notes_u1_p1", json.dumps({"notes": "mine", "lastEdited": 123}))

    blocks = store.private_notes("u1", "p1")

    assert [(b["content"], b["last_editor_name"], b["last_edited_at"]) for b in blocks] == [
        ("mine", "You", 123)
    ]


def test_missing_or_blank_ledger_is_empty(store: RentStore) -> None:
    assert store.staff_notes("p1") == []
    store.kv.write("rentapp_notes_staff_p2", "   ")
    assert store.staff_notes("p2") == []


def test_edit_block_touches_only_its_target() -> None:
    first = store_notes.new_block("Asha", 1_000, "one")
    second = store_notes.new_block("Baraka", 2_000, "two")
    blocks = [first, second]

    edited = store_notes.edit_block(blocks, second["block_id"], "two, revised", "Chausiku", 9_000)

    assert edited[0] == first
    assert edited[1]["content"] == "two, revised"
    assert edited[1]["last_editor_name"] == "Chausiku"
    assert edited[1]["last_edited_at"] == 9_000
    assert blocks[1]["content"] == "two"


def test_scopes_use_disjoint_keys_and_topics(store: RentStore) -> None:
    seen: list[ChangeEvent] = []
    store.subscribe(seen.append)
    now = store._now_ms()

    store.save_staff_notes("p1", [store_notes.new_block("Asha", now, "shared")])
    store.save_private_notes("u1", "p1", [store_notes.new_block("You", now, "private")])
    store.save_user_notes("staffA", [store_notes.new_block("Asha", now, "to-do")])

    assert [event.topic for event in seen] == [
        topics.NOTES_CHANGED,
        topics.PRIVATE_NOTES_CHANGED,
        topics.USER_NOTES_CHANGED,
    ]
    assert store.staff_notes("p1")[0]["content"] == "shared"
    assert store.private_notes("u1", "p1")[0]["content"] == "private"
    assert store.user_notes("staffA")[0]["content"] == "to-do"
    assert store.private_notes("u2", "p1") == []


def test_private_notes_do_not_touch_the_record(store: RentStore, clock: FakeClock) -> None:
    created = store.create_property({"ownerId": "u1", "id": "p1"})
    assert created is not None
    clock.advance(30)

    store.save_private_notes("u1", "p1", [store_notes.new_block("You", store._now_ms(), "x")])

    assert store.get_property("p1")["updatedAt"] == created["updatedAt"]


def test_property_notes_any_user_falls_back_to_private(store: RentStore) -> None:
    now = store._now_ms()
    store.save_private_notes("u7", "p1", [store_notes.new_block("You", now, "from u7")])
    assert store_notes.property_notes_any_user(store, "p1") == "from u7"

    store.save_staff_notes("p1", [store_notes.new_block("Asha", now, "shared first")])
    assert store_notes.property_notes_any_user(store, "p1") == "shared first"
    assert store_notes.property_notes_any_user(store, "p2") == ""


def test_format_time_ago() -> None:
    now = 10 * 86_400_000
    assert store_notes.format_time_ago(now - 5_000, now) == "just now"
    assert store_notes.format_time_ago(now - 5 * 60_000, now) == "5m ago"
    assert store_notes.format_time_ago(now - 3 * 3_600_000, now, short=True) == "3h"
    assert store_notes.format_time_ago(now - 2 * 86_400_000, now) == "2d ago"
