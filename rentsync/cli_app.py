from __future__ import annotations

import typer
from rich import print

from . import __version__
from .commands.bookmark_cmds import (
    bookmark_change_cmd,
    bookmarks_list_cmd,
    bookmarks_removed_cmd,
)
from .commands.common import configure_logging, load_config_or_exit
from .commands.property_cmds import (
    catalog_cmd,
    properties_create_cmd,
    properties_delete_cmd,
    properties_list_cmd,
    properties_show_cmd,
    properties_update_cmd,
)
from .commands.watch_cmds import watch_cmd
from .commands.workflow_cmds import (
    notes_add_cmd,
    notes_edit_cmd,
    notes_show_cmd,
    status_confirm_cmd,
    status_list_cmd,
    status_set_cmd,
    status_show_cmd,
)
from .config import get_config_path
from .search_session import SearchFilters
from .store import RentStore

app = typer.Typer(help="rentsync: shared property listings, bookmarks and staff workflow")
properties_app = typer.Typer(help="Create and manage property records")
bookmarks_app = typer.Typer(help="Per-user bookmarks and the recently-removed list")
status_app = typer.Typer(help="Shared staff workflow status")
notes_app = typer.Typer(help="Block-structured property notes")
app.add_typer(properties_app, name="properties")
app.add_typer(bookmarks_app, name="bookmarks")
app.add_typer(status_app, name="status")
app.add_typer(notes_app, name="notes")


@app.callback()
def main_callback() -> None:
    config = load_config_or_exit()
    configure_logging(config.log_level)


def _store(db_path: str | None) -> RentStore:
    return RentStore(db_path or None)


@properties_app.command("list")
def properties_list(
    owner: str = typer.Argument(..., help="Owner id"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List properties created by an owner."""

    properties_list_cmd(store_from_path=_store, db_path=db_path, owner=owner)


@properties_app.command("show")
def properties_show(
    property_id: str = typer.Argument(..., help="Property id"),
    owner: str = typer.Option(None, help="Only show if owned by this user"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show a stored property record."""

    properties_show_cmd(
        store_from_path=_store, db_path=db_path, property_id=property_id, owner=owner
    )


@properties_app.command("create")
def properties_create(
    data: str = typer.Argument(..., help="Property record as a JSON object"),
    owner: str = typer.Option(None, help="Owner id (overrides ownerId in the record)"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Create a property record."""

    properties_create_cmd(store_from_path=_store, db_path=db_path, data=data, owner=owner)


@properties_app.command("update")
def properties_update(
    property_id: str = typer.Argument(..., help="Property id"),
    data: str = typer.Argument(..., help="Fields to change as a JSON object"),
    user: str = typer.Option(None, help="Requesting user id"),
    role: str = typer.Option(None, help="Requesting user role"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Update a property record you own."""

    properties_update_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        data=data,
        user=user,
        role=role,
    )


@properties_app.command("delete")
def properties_delete(
    property_id: str = typer.Argument(..., help="Property id"),
    user: str = typer.Option(None, help="Requesting user id"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Delete a property record you own."""

    properties_delete_cmd(
        store_from_path=_store, db_path=db_path, property_id=property_id, user=user
    )


@app.command("catalog")
def catalog(
    property_type: str = typer.Option(None, "--type", help="Parent property type"),
    profile: str = typer.Option(None, help="Property sub-type"),
    status: str = typer.Option(None, help="Listing status, e.g. available"),
    region: str = typer.Option(None, help="Region (case-insensitive)"),
    ward: str = typer.Option(None, help="Ward (case-insensitive)"),
    min_price: int = typer.Option(None, help="Minimum price"),
    max_price: int = typer.Option(None, help="Maximum price"),
    min_area: float = typer.Option(None, help="Minimum area"),
    max_area: float = typer.Option(None, help="Maximum area"),
    area_unit: str = typer.Option("sqm", help="Unit for area filters: sqm or acre"),
    limit: int = typer.Option(50, help="Maximum rows to print"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List the merged catalog of stored and seed properties."""

    filters: SearchFilters = {}
    if property_type:
        filters["propertyType"] = property_type
    if profile:
        filters["profile"] = profile
    if status:
        filters["status"] = status
    if region:
        filters["region"] = region
    if ward:
        filters["ward"] = ward
    if min_price:
        filters["minPrice"] = min_price
    if max_price:
        filters["maxPrice"] = max_price
    if min_area:
        filters["minArea"] = min_area
    if max_area:
        filters["maxArea"] = max_area
    if min_area or max_area:
        filters["areaUnit"] = area_unit
    catalog_cmd(store_from_path=_store, db_path=db_path, filters=filters, limit=limit)


@bookmarks_app.command("list")
def bookmarks_list(
    user: str = typer.Option(None, help="User id (guest when omitted)"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List bookmarked properties."""

    bookmarks_list_cmd(store_from_path=_store, db_path=db_path, user=user)


@bookmarks_app.command("removed")
def bookmarks_removed(
    user: str = typer.Option(None, help="User id (guest when omitted)"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List recently removed bookmarks."""

    bookmarks_removed_cmd(store_from_path=_store, db_path=db_path, user=user)


def _bookmark_command(action: str, summary: str) -> None:
    def command(
        property_id: str = typer.Argument(..., help="Property id"),
        user: str = typer.Option(None, help="User id (guest when omitted)"),
        db_path: str = typer.Option(None, help="Path to SQLite database"),
    ) -> None:
        bookmark_change_cmd(
            store_from_path=_store,
            db_path=db_path,
            action=action,
            property_id=property_id,
            user=user,
        )

    command.__doc__ = summary
    bookmarks_app.command(action)(command)


_bookmark_command("add", "Bookmark a property.")
_bookmark_command("remove", "Move a bookmark to the recently-removed list.")
_bookmark_command("restore", "Restore a recently removed bookmark.")
_bookmark_command("purge", "Forget a recently removed bookmark for good.")


@status_app.command("set")
def status_set(
    property_id: str = typer.Argument(..., help="Property id"),
    state: str = typer.Argument(..., help="default, followup or closed"),
    staff_id: str = typer.Option(..., help="Acting staff id"),
    staff_name: str = typer.Option(..., help="Acting staff name"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Set the shared workflow status of a property."""

    status_set_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        state=state,
        staff_id=staff_id,
        staff_name=staff_name,
    )


@status_app.command("show")
def status_show(
    property_id: str = typer.Argument(..., help="Property id"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show who last changed a property's workflow status."""

    status_show_cmd(store_from_path=_store, db_path=db_path, property_id=property_id)


@status_app.command("followups")
def status_followups(
    staff_id: str = typer.Option(None, help="Only this staff member's follow-ups"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List follow-up properties."""

    status_list_cmd(store_from_path=_store, db_path=db_path, state="followup", staff_id=staff_id)


@status_app.command("closed")
def status_closed(
    staff_id: str = typer.Option(None, help="Only properties this staff member closed"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List closed properties."""

    status_list_cmd(store_from_path=_store, db_path=db_path, state="closed", staff_id=staff_id)


@status_app.command("confirm")
def status_confirm(
    property_id: str = typer.Argument(..., help="Property id"),
    staff_id: str = typer.Option(..., help="Confirming staff id"),
    staff_name: str = typer.Option(..., help="Confirming staff name"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Record that a staff member confirmed a property's status."""

    status_confirm_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        staff_id=staff_id,
        staff_name=staff_name,
    )


@notes_app.command("show")
def notes_show(
    property_id: str = typer.Argument(..., help="Property id"),
    private_for: str = typer.Option(None, help="Show this user's private notes instead"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show note blocks for a property."""

    notes_show_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        private_for=private_for,
    )


@notes_app.command("add")
def notes_add(
    property_id: str = typer.Argument(..., help="Property id"),
    content: str = typer.Argument(..., help="Note text"),
    editor: str = typer.Option(..., help="Name recorded as the block's editor"),
    private_for: str = typer.Option(None, help="Add to this user's private notes"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Append a note block."""

    notes_add_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        content=content,
        editor=editor,
        private_for=private_for,
    )


@notes_app.command("edit")
def notes_edit(
    property_id: str = typer.Argument(..., help="Property id"),
    block_id: str = typer.Argument(..., help="Block id"),
    content: str = typer.Argument(..., help="New text; empty deletes the block"),
    editor: str = typer.Option(..., help="Name recorded as the block's editor"),
    private_for: str = typer.Option(None, help="Edit this user's private notes"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Rewrite a single note block."""

    notes_edit_cmd(
        store_from_path=_store,
        db_path=db_path,
        property_id=property_id,
        block_id=block_id,
        content=content,
        editor=editor,
        private_for=private_for,
    )


@app.command("watch")
def watch(
    duration: float = typer.Option(0.0, help="Seconds to watch; 0 runs until interrupted"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Print change events from this and other processes sharing the database."""

    watch_cmd(store_from_path=_store, db_path=db_path, duration=duration)


@app.command("config-path")
def config_path() -> None:
    """Print the config file location."""

    print(str(get_config_path()))


def main() -> None:
    app()


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)
