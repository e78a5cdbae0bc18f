from collections.abc import Callable

import pytest

from rentsync.kv import StoreWriteError
from rentsync.store import RentStore
from rentsync.store import notes as store_notes
from rentsync.sync import ChangeEvent


def _create(store: RentStore) -> None:
    store.create_property({"ownerId": "u1", "id": "p1"})


def _bookmark(store: RentStore) -> None:
    store.add_bookmark("p1", "u1")


def _bookmark_then_remove(store: RentStore) -> None:
    store.add_bookmark("p1", "u1")
    store.remove_bookmark("p1", "u1")


def _nothing(store: RentStore) -> None:
    return None


CASES: list[tuple[str, Callable[[RentStore], None], Callable[[RentStore], bool]]] = [
    ("update_property", _create, lambda s: s.update_property("p1", {"price": 1}, "u1")),
    ("delete_property", _create, lambda s: s.delete_property("p1", "u1")),
    ("set_status", _nothing, lambda s: s.set_status("p1", "followup", "staffA", "Asha")),
    ("add_bookmark", _nothing, lambda s: s.add_bookmark("p1", "u1")),
    ("remove_bookmark", _bookmark, lambda s: s.remove_bookmark("p1", "u1")),
    ("restore_bookmark", _bookmark_then_remove, lambda s: s.restore_bookmark("p1", "u1")),
    (
        "save_staff_notes",
        _nothing,
        lambda s: s.save_staff_notes("p1", [store_notes.new_block("Asha", 1, "call back")]),
    ),
    ("confirm_status", _nothing, lambda s: s.confirm_status("p1", "staffA", "Asha")),
]


@pytest.mark.parametrize(
    ("setup", "operation"),
    [pytest.param(setup, operation, id=name) for name, setup, operation in CASES],
)
def test_failed_write_returns_false_without_publishing(
    store: RentStore,
    monkeypatch: pytest.MonkeyPatch,
    setup: Callable[[RentStore], None],
    operation: Callable[[RentStore], bool],
) -> None:
    setup(store)
    seen: list[ChangeEvent] = []
    store.subscribe(seen.append)

    def failing_write(key: str, value: str) -> None:
        raise StoreWriteError(f"{key}: disk full")

    monkeypatch.setattr(store.kv, "write", failing_write)

    assert operation(store) is False
    assert seen == []
