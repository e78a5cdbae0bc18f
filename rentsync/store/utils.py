from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from typing import Any

_EPOCH = dt.datetime.min.replace(tzinfo=dt.UTC)


def iso_from_timestamp(ts: float) -> str:
    return dt.datetime.fromtimestamp(ts, dt.UTC).isoformat()


def ms_from_timestamp(ts: float) -> int:
    return int(ts * 1000)


def parse_iso8601(value: str | None) -> dt.datetime | None:
    if not value:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def advance_iso(previous: str | None, now_iso: str) -> str:
    """Return ``now_iso``, or one microsecond past ``previous`` if the clock has not moved."""

    before = parse_iso8601(previous)
    now = parse_iso8601(now_iso)
    if before is None or now is None or now > before:
        return now_iso
    return (before + dt.timedelta(microseconds=1)).isoformat()


def recency(updated_at: str | None, created_at: str | None) -> dt.datetime:
    return parse_iso8601(updated_at) or parse_iso8601(created_at) or _EPOCH


def record_recency(record: Mapping[str, Any]) -> dt.datetime:
    return recency(record.get("updatedAt"), record.get("createdAt"))
