from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict

# Stored verbatim in camelCase under ``rentapp_properties``; display attributes vary.
PropertyRecord = dict[str, Any]


class StatusActor(TypedDict):
    id: str
    name: str


class PropertyStatus(TypedDict):
    status: str
    updatedAt: int
    updatedBy: StatusActor


class StatusConfirmation(TypedDict):
    propertyId: str
    staffId: str
    staffName: str
    confirmedAt: str


class RemovedBookmark(TypedDict):
    propertyId: str
    removedAt: str


class NoteBlock(TypedDict):
    block_id: str
    content: str
    last_editor_name: str
    last_edited_at: int


class ActiveSession(TypedDict):
    userId: str
    role: str
    timestamp: int


class GuestUser(TypedDict):
    id: str
    firstVisit: int
    lastVisit: int
    isActive: bool


@dataclass(frozen=True)
class DisplayProperty:
    id: str
    title: str
    location: str
    description: str
    price: int
    images: tuple[str, ...]
    bedrooms: int
    bathrooms: int
    area: int
    plan: str
    pricing_unit: str
    status: str
    updated_at: str
    created_at: str | None = None
    property_type: str | None = None
    region: str | None = None
    ward: str | None = None
    street_address: str | None = None
    area_unit: str = "sqm"
    amenities: tuple[str, ...] = ()
    owner_id: str | None = None
    owner_name: str | None = None
    owner_email: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    is_seed: bool = False


@dataclass
class CacheEntry:
    value: tuple[DisplayProperty, ...]
    computed_at: float
