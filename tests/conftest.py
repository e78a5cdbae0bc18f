from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from rentsync.store import RentStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RENTSYNC_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("RENTSYNC_DB_PATH", str(tmp_path / "default.sqlite"))
    for name in ("RENTSYNC_CATALOG_PATH", "RENTSYNC_CACHE_TTL_MS", "RENTSYNC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> Iterator[RentStore]:
    rent_store = RentStore(tmp_path / "rent.sqlite", clock=clock, seed_catalog=[])
    try:
        yield rent_store
    finally:
        rent_store.close()
