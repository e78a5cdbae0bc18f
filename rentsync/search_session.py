from __future__ import annotations

import secrets
import string
import time
from collections.abc import Iterable
from typing import TypedDict

from .store.catalog import parse_property_type
from .store.types import DisplayProperty

SQM_PER_ACRE = 4046.86
_ID_ALPHABET = string.ascii_lowercase + string.digits


class SearchFilters(TypedDict, total=False):
    propertyType: str
    profile: str
    status: str
    region: str
    ward: str
    minPrice: int
    maxPrice: int
    minArea: float
    maxArea: float
    areaUnit: str


def generate_search_session_id(now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"search_{stamp}_{suffix}"


class SearchSession:
    """Filters of the search currently on screen.

    Lives only as long as the process; nothing here touches the store.
    """

    def __init__(self) -> None:
        self.session_id: str | None = None
        self.filters: SearchFilters | None = None
        self.version = 0

    def set(self, session_id: str, filters: SearchFilters | None) -> None:
        self.session_id = session_id
        self.filters = filters
        self.version += 1

    def clear(self) -> None:
        self.session_id = None
        self.filters = None
        self.version = 0

    @property
    def active(self) -> bool:
        return self.session_id is not None

    def apply(self, properties: Iterable[DisplayProperty]) -> list[DisplayProperty]:
        return apply_filters(properties, self.filters)


def _normalise(value: str | None) -> str:
    return (value or "").strip().lower()


def _area_in_unit(prop: DisplayProperty, unit: str) -> float:
    source = prop.area_unit or "sqm"
    if source == "acre" and unit == "sqm":
        return prop.area * SQM_PER_ACRE
    if source == "sqm" and unit == "acre":
        return prop.area / SQM_PER_ACRE
    return float(prop.area)


def _matches(prop: DisplayProperty, filters: SearchFilters) -> bool:
    parsed = parse_property_type(prop.property_type)
    if filters.get("propertyType") and (parsed is None or parsed[0] != filters["propertyType"]):
        return False
    if filters.get("profile") and (parsed is None or parsed[1] != filters["profile"]):
        return False
    if filters.get("status") and prop.status != filters["status"]:
        return False
    if filters.get("region") and _normalise(prop.region) != _normalise(filters["region"]):
        return False
    if filters.get("ward") and _normalise(prop.ward) != _normalise(filters["ward"]):
        return False
    if filters.get("minPrice") and prop.price < filters["minPrice"]:
        return False
    if filters.get("maxPrice") and prop.price > filters["maxPrice"]:
        return False

    min_area = filters.get("minArea")
    max_area = filters.get("maxArea")
    if not min_area and not max_area:
        return True
    if prop.area <= 0:
        return False
    area = _area_in_unit(prop, filters.get("areaUnit") or "sqm")
    if min_area and area < min_area:
        return False
    if max_area and area > max_area:
        return False
    return True


def apply_filters(
    properties: Iterable[DisplayProperty], filters: SearchFilters | None
) -> list[DisplayProperty]:
    """Narrow ``properties`` to those matching every set filter; falsy filters are ignored."""

    if not filters:
        return list(properties)
    return [prop for prop in properties if _matches(prop, filters)]
