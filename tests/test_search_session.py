import re

from rentsync.search_session import (
    SearchSession,
    apply_filters,
    generate_search_session_id,
)
from rentsync.store.catalog import to_display_property


def _prop(pid: str, **fields):
    return to_display_property({"id": pid, **fields})


PROPERTIES = [
    _prop(
        "flat",
        propertyType="Residential|Apartment",
        region="Dar es Salaam",
        ward="Msasani",
        price=800_000,
        squareFootage=120,
    ),
    _prop(
        "farm",
        propertyType="Land|Farm",
        region="Arusha",
        ward="Usa River",
        price=5_000_000,
        squareFootage=2,
        areaUnit="acre",
    ),
    _prop("shop", propertyType="Commercial|Shop", region="Arusha", price=300_000),
]


def _ids(items) -> list[str]:
    return [prop.id for prop in items]


def test_session_versions_each_search() -> None:
    session = SearchSession()
    assert not session.active

    session.set("search_1", {"region": "arusha"})
    session.set("search_2", {"region": "arusha", "minPrice": 1})

    assert session.active
    assert session.version == 2
    assert session.filters == {"region": "arusha", "minPrice": 1}

    session.clear()
    assert session.session_id is None
    assert session.filters is None
    assert session.version == 0


def test_generated_ids_have_search_prefix() -> None:
    assert re.fullmatch(r"search_123_[a-z0-9]{9}", generate_search_session_id(123))


def test_no_filters_keeps_everything() -> None:
    assert _ids(apply_filters(PROPERTIES, None)) == ["flat", "farm", "shop"]
    assert _ids(apply_filters(PROPERTIES, {})) == ["flat", "farm", "shop"]


def test_type_and_profile_match_parent_and_child() -> None:
    assert _ids(apply_filters(PROPERTIES, {"propertyType": "Land"})) == ["farm"]
    assert _ids(apply_filters(PROPERTIES, {"profile": "Shop"})) == ["shop"]
    assert _ids(apply_filters(PROPERTIES, {"propertyType": "Land", "profile": "Shop"})) == []


def test_region_and_ward_ignore_case() -> None:
    assert _ids(apply_filters(PROPERTIES, {"region": " ARUSHA "})) == ["farm", "shop"]
    assert _ids(apply_filters(PROPERTIES, {"ward": "msasani"})) == ["flat"]


def test_price_range() -> None:
    filters = {"minPrice": 500_000, "maxPrice": 1_000_000}
    assert _ids(apply_filters(PROPERTIES, filters)) == ["flat"]


def test_area_converts_between_units() -> None:
    in_sqm = {"minArea": 5_000, "areaUnit": "sqm"}
    assert _ids(apply_filters(PROPERTIES, in_sqm)) == ["farm"]

    in_acres = {"maxArea": 0.1, "areaUnit": "acre"}
    assert _ids(apply_filters(PROPERTIES, in_acres)) == ["flat"]


def test_properties_without_area_never_match_area_filters() -> None:
    assert "shop" not in _ids(apply_filters(PROPERTIES, {"maxArea": 1_000_000}))


def test_session_apply_uses_current_filters() -> None:
    session = SearchSession()
    session.set(generate_search_session_id(), {"status": "available", "region": "arusha"})

    assert _ids(session.apply(PROPERTIES)) == ["farm", "shop"]
