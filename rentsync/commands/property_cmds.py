from __future__ import annotations

import json

import typer
from rich import print

from rentsync.search_session import SearchFilters, apply_filters
from rentsync.store.catalog import to_display_property

from .common import parse_json_object_or_exit, print_properties, property_line


def properties_list_cmd(*, store_from_path, db_path: str | None, owner: str) -> None:
    """List records created by one owner, most recently updated first."""

    store = store_from_path(db_path)
    try:
        records = store.list_by_owner(owner)
    finally:
        store.close()
    print_properties(
        [to_display_property(record) for record in records],
        empty=f"No properties owned by {owner}",
    )


def properties_show_cmd(
    *, store_from_path, db_path: str | None, property_id: str, owner: str | None
) -> None:
    store = store_from_path(db_path)
    try:
        record = store.get_property(property_id, owner)
        status = store.get_status(property_id)
    finally:
        store.close()
    if record is None:
        print(f"[red]Property {property_id} not found[/red]")
        raise typer.Exit(code=1)
    print(json.dumps(record, ensure_ascii=False, indent=2))
    if status:
        actor = status["updatedBy"]
        print(f"Workflow: {status['status']} (by {actor['name'] or actor['id'] or 'unknown'})")


def properties_create_cmd(
    *, store_from_path, db_path: str | None, data: str, owner: str | None
) -> None:
    record = parse_json_object_or_exit(data, what="property")
    if owner:
        record["ownerId"] = owner
    store = store_from_path(db_path)
    try:
        created = store.create_property(record)
    finally:
        store.close()
    if created is None:
        print("[red]Property was not created (missing owner, duplicate id or write failure)[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Created property {created['id']}[/green]")


def properties_update_cmd(
    *,
    store_from_path,
    db_path: str | None,
    property_id: str,
    data: str,
    user: str | None,
    role: str | None,
) -> None:
    patch = parse_json_object_or_exit(data, what="patch")
    store = store_from_path(db_path)
    try:
        ok = store.update_property(property_id, patch, user, role)
    finally:
        store.close()
    if not ok:
        print(f"[red]Property {property_id} was not updated[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Updated property {property_id}[/green]")


def properties_delete_cmd(
    *, store_from_path, db_path: str | None, property_id: str, user: str | None
) -> None:
    store = store_from_path(db_path)
    try:
        ok = store.delete_property(property_id, user)
    finally:
        store.close()
    if not ok:
        print(f"[red]Property {property_id} was not deleted[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Deleted property {property_id}[/green]")


def catalog_cmd(
    *,
    store_from_path,
    db_path: str | None,
    filters: SearchFilters,
    limit: int,
) -> None:
    """Print the merged catalog, narrowed by any filters given."""

    store = store_from_path(db_path)
    try:
        items = apply_filters(store.get_all(), filters)
    finally:
        store.close()
    if not items:
        print("[yellow]No properties match[/yellow]")
        return
    for prop in items[:limit]:
        print(property_line(prop))
    if len(items) > limit:
        print(f"... {len(items) - limit} more")
