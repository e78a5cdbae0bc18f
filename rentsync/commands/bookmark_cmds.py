from __future__ import annotations

import typer
from rich import print

from .common import print_properties


def bookmarks_list_cmd(*, store_from_path, db_path: str | None, user: str | None) -> None:
    store = store_from_path(db_path)
    try:
        items = store.bookmarked_properties(user)
    finally:
        store.close()
    print_properties(items, empty="No bookmarks")


def bookmarks_removed_cmd(*, store_from_path, db_path: str | None, user: str | None) -> None:
    """Show recently removed bookmarks; entries past retention are purged on read."""

    store = store_from_path(db_path)
    try:
        entries = store.recently_removed(user)
    finally:
        store.close()
    if not entries:
        print("[yellow]No recently removed bookmarks[/yellow]")
        return
    for entry in entries:
        print(f"- {entry['propertyId']} removed {entry['removedAt']}")


def bookmark_change_cmd(
    *,
    store_from_path,
    db_path: str | None,
    action: str,
    property_id: str,
    user: str | None,
) -> None:
    store = store_from_path(db_path)
    try:
        if action == "add":
            ok = store.add_bookmark(property_id, user)
        elif action == "remove":
            ok = store.remove_bookmark(property_id, user)
        elif action == "restore":
            ok = store.restore_bookmark(property_id, user)
        elif action == "purge":
            ok = store.purge_bookmark(property_id, user)
        else:
            print(f"[red]Unknown bookmark action: {action}[/red]")
            raise typer.Exit(code=1)
    finally:
        store.close()
    if not ok:
        print(f"[yellow]No change: {action} {property_id}[/yellow]")
        raise typer.Exit(code=1)
    print(f"[green]{action.capitalize()} {property_id}[/green]")
