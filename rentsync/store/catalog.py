from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from . import utils as store_utils
from .properties import load_records
from .types import CacheEntry, DisplayProperty

if TYPE_CHECKING:
    from ._store import RentStore

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_WORD_START_RE = re.compile(r"\b\w")
_BEDROOM_HINTS = (
    (("1 bdrm", "1-bdrm"), 1),
    (("2 bdrm", "2-bdrm"), 2),
    (("3 bdrm", "3-bdrm"), 3),
    (("4 bdrm", "4-bdrm"), 4),
    (("5+ bdrm", "5-bdrm"), 5),
)
DEFAULT_BEDROOMS = 2


def parse_property_type(value: str | None) -> tuple[str, str | None] | None:
    """Split a ``"Parent|Child"`` property type into its parts."""

    if not value:
        return None
    if "|" in value:
        parent, child = value.split("|", 1)
        return parent.strip(), child.strip() or None
    return value.strip(), None


def property_type_label(value: str | None) -> str:
    parsed = parse_property_type(value)
    if parsed is None:
        return value or ""
    parent, child = parsed
    return child or parent


def _parse_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT_RE.match(str(value or "").replace(",", ""))
    return int(match.group(1)) if match else 0


def _title_words(value: Any) -> str:
    text = str(value or "").replace("-", " ")
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), text)


def _infer_bedrooms(property_type: str) -> int:
    lowered = property_type.lower()
    for hints, count in _BEDROOM_HINTS:
        if any(hint in lowered for hint in hints):
            return count
    return DEFAULT_BEDROOMS


def _infer_bathrooms(bedrooms: int) -> int:
    if bedrooms >= 2:
        return 2
    return 1


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(str(item) for item in value if item)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def to_display_property(record: Mapping[str, Any]) -> DisplayProperty:
    """Project a stored record into the shape every read path works with."""

    property_type = str(record.get("propertyType") or "")
    type_label = property_type_label(property_type)
    ward = _title_words(record.get("ward"))
    region = _title_words(record.get("region"))
    title = str(record.get("propertyTitle") or record.get("title") or type_label)
    description = str(
        record.get("description") or f"A {type_label} located in {ward}, {region}."
    )
    bedrooms = (
        _parse_int(record["bedrooms"]) if record.get("bedrooms") else _infer_bedrooms(property_type)
    )
    bathrooms = (
        _parse_int(record["bathrooms"]) if record.get("bathrooms") else _infer_bathrooms(bedrooms)
    )
    location = ", ".join(part for part in (record.get("streetAddress"), ward, region) if part)
    area_source = record.get("squareFootage") or record.get("area")
    return DisplayProperty(
        id=str(record["id"]),
        title=title,
        location=location,
        description=description,
        price=_parse_int(record.get("price")),
        images=_str_tuple(record.get("images")),
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        area=_parse_int(area_source),
        plan=str(record.get("paymentPlan") or record.get("plan") or ""),
        pricing_unit=str(record.get("pricingUnit") or "month"),
        status=str(record.get("status") or "available"),
        updated_at=str(record.get("updatedAt") or record.get("createdAt") or ""),
        created_at=_optional_str(record.get("createdAt")),
        property_type=property_type or None,
        region=_optional_str(record.get("region")),
        ward=_optional_str(record.get("ward")),
        street_address=_optional_str(record.get("streetAddress")),
        area_unit=str(record.get("areaUnit") or "sqm"),
        amenities=_str_tuple(record.get("amenities")),
        owner_id=_optional_str(record.get("ownerId")),
        owner_name=_optional_str(record.get("ownerName")),
        owner_email=_optional_str(record.get("ownerEmail")),
        contact_name=_optional_str(record.get("contactName")),
        contact_phone=_optional_str(record.get("contactPhone")),
        contact_email=_optional_str(record.get("contactEmail")),
    )


def seed_to_display(item: Mapping[str, Any]) -> DisplayProperty:
    return DisplayProperty(
        id=str(item["id"]),
        title=str(item.get("title") or ""),
        location=str(item.get("location") or ""),
        description=str(item.get("description") or ""),
        price=_parse_int(item.get("price")),
        images=_str_tuple(item.get("images")),
        bedrooms=_parse_int(item.get("bedrooms")),
        bathrooms=_parse_int(item.get("bathrooms")),
        area=_parse_int(item.get("area")),
        plan=str(item.get("plan") or ""),
        pricing_unit=str(item.get("pricingUnit") or "month"),
        status=str(item.get("status") or "available"),
        updated_at=str(item.get("updatedAt") or ""),
        created_at=_optional_str(item.get("createdAt")),
        amenities=_str_tuple(item.get("amenities")),
        contact_name=_optional_str(item.get("contactName")),
        contact_phone=_optional_str(item.get("contactPhone")),
        contact_email=_optional_str(item.get("contactEmail")),
        is_seed=True,
    )


def load_seed_catalog(path: Path | str | None) -> list[DisplayProperty]:
    if not path:
        return []
    catalog_path = Path(path).expanduser()
    if not catalog_path.exists():
        logger.warning("catalog: seed file %s not found", catalog_path)
        return []
    try:
        data = json.loads(catalog_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("catalog: seed file %s unreadable", catalog_path, exc_info=exc)
        return []
    if not isinstance(data, list):
        logger.warning("catalog: seed file %s is not a list", catalog_path)
        return []
    return seed_items(data)


def seed_items(items: Iterable[Any]) -> list[DisplayProperty]:
    seeds: list[DisplayProperty] = []
    for item in items:
        if isinstance(item, DisplayProperty):
            seeds.append(item)
        elif isinstance(item, Mapping) and item.get("id"):
            seeds.append(seed_to_display(item))
    return seeds


def _display_recency(prop: DisplayProperty):
    return store_utils.recency(prop.updated_at, prop.created_at)


def get_all(store: RentStore) -> tuple[DisplayProperty, ...]:
    """Merged stored and seed properties, newest first.

    Within the TTL every caller gets the same tuple back, so nobody can
    corrupt the cached view for the others.
    """

    now = store._now()
    entry = store._catalog_cache
    ttl_s = store.config.cache_ttl_ms / 1000
    if entry is not None and now - entry.computed_at < ttl_s:
        return entry.value

    converted: list[DisplayProperty] = []
    for record in load_records(store):
        try:
            converted.append(to_display_property(record))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("catalog: skipping unreadable record %r", record.get("id"), exc_info=exc)
    merged = tuple(
        sorted([*converted, *store.seed_catalog], key=_display_recency, reverse=True)
    )
    store._catalog_cache = CacheEntry(value=merged, computed_at=now)
    return merged


def invalidate(store: RentStore) -> None:
    store._catalog_cache = None


def properties_by_status(store: RentStore, status: str) -> list[DisplayProperty]:
    return [prop for prop in get_all(store) if prop.status == status]


def by_ids(store: RentStore, property_ids: Iterable[str]) -> list[DisplayProperty]:
    wanted = set(property_ids)
    return [prop for prop in get_all(store) if prop.id in wanted]
