from pathlib import Path

from conftest import FakeClock

from rentsync.store import RentStore
from rentsync.store import presence as store_presence


def test_sessions_expire_after_timeout(store: RentStore, clock: FakeClock) -> None:
    store_presence.add_active_session(store, "u1")
    clock.advance(10 * 60)
    store_presence.add_active_session(store, "staffA", role="staff")
    assert store.online_user_count() == 2

    clock.advance(25 * 60)
    assert store.online_user_count() == 1

    store_presence.remove_active_session(store, "staffA")
    assert store.online_user_count() == 0


def test_re_adding_a_session_refreshes_it(store: RentStore) -> None:
    store_presence.add_active_session(store, "u1")
    store_presence.add_active_session(store, "u1")

    assert [s["userId"] for s in store_presence.active_sessions(store)] == ["u1"]


def test_guest_reused_within_window(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "rent.sqlite"
    first = RentStore(db_path, clock=clock, seed_catalog=[])
    guest_id = first.track_guest_visit()
    first.close()
    assert _active_guests(db_path, clock) == 0

    clock.advance(60)
    second = RentStore(db_path, clock=clock, seed_catalog=[])
    try:
        assert second.track_guest_visit() == guest_id
        assert store_presence.active_guest_count(second) == 1
    finally:
        second.close()


def test_new_guest_after_window(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "rent.sqlite"
    first = RentStore(db_path, clock=clock, seed_catalog=[])
    guest_id = first.track_guest_visit()
    first.close()

    clock.advance(10 * 60)
    second = RentStore(db_path, clock=clock, seed_catalog=[])
    try:
        assert second.track_guest_visit() != guest_id
        assert len(store_presence.guest_users(second)) == 2
    finally:
        second.close()


def test_staff_enrollment_defaults_off_and_toggles(store: RentStore) -> None:
    assert store_presence.staff_enrollment_enabled(store) is False
    assert store_presence.toggle_staff_enrollment(store) is True
    assert store.kv.read("rentapp_staff_enrollment_enabled") == "true"
    assert store_presence.toggle_staff_enrollment(store) is False


def _active_guests(db_path: Path, clock: FakeClock) -> int:
    probe = RentStore(db_path, clock=clock, seed_catalog=[])
    try:
        return store_presence.active_guest_count(probe)
    finally:
        probe.close()


def test_clear_sessions_empties_the_list(store: RentStore) -> None:
    store_presence.add_active_session(store, "u1")
    assert store_presence.remove_active_session(store, None) is False

    assert store_presence.clear_sessions(store) is True
    assert store.online_user_count() == 0
