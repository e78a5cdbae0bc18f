from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from .kv import KeyValueStore, StoreWriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def decode_raw(raw: str | None) -> Any | None:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def decode(kv: KeyValueStore, key: str, fallback: T) -> T:
    """Read ``key`` and parse it, degrading to ``fallback`` on any problem.

    A value that does not parse, or parses to a different container type than
    ``fallback``, is treated as corrupt: it is logged, removed from the store
    and the fallback is returned. Bad data never raises.
    """

    raw = kv.read(key)
    if raw is None:
        return fallback
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("codec: malformed value for %s, discarding", key, exc_info=exc)
        _discard(kv, key)
        return fallback
    if fallback is not None and not isinstance(value, type(fallback)):
        logger.warning(
            "codec: expected %s for %s, got %s; discarding",
            type(fallback).__name__,
            key,
            type(value).__name__,
        )
        _discard(kv, key)
        return fallback
    return value


def write(kv: KeyValueStore, key: str, value: Any) -> None:
    kv.write(key, encode(value))


def _discard(kv: KeyValueStore, key: str) -> None:
    try:
        kv.remove(key)
    except StoreWriteError as exc:
        logger.warning("codec: could not discard %s", key, exc_info=exc)
