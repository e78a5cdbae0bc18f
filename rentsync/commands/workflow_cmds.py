from __future__ import annotations

import typer
from rich import print

from rentsync.store import notes as store_notes
from rentsync.store.status import STATES

from .common import format_ms, print_properties


def status_set_cmd(
    *,
    store_from_path,
    db_path: str | None,
    property_id: str,
    state: str,
    staff_id: str,
    staff_name: str,
) -> None:
    if state not in STATES:
        print(f"[red]Unknown state {state!r}; expected one of {', '.join(STATES)}[/red]")
        raise typer.Exit(code=1)
    store = store_from_path(db_path)
    try:
        ok = store.set_status(property_id, state, staff_id, staff_name)
    finally:
        store.close()
    if not ok:
        print(f"[red]Status for {property_id} was not saved[/red]")
        raise typer.Exit(code=1)
    print(f"[green]{property_id} -> {state}[/green]")


def status_show_cmd(*, store_from_path, db_path: str | None, property_id: str) -> None:
    store = store_from_path(db_path)
    try:
        status = store.get_status(property_id)
        confirmation = store.get_status_confirmation(property_id)
    finally:
        store.close()
    if status is None:
        print(f"{property_id}: default")
    else:
        actor = status["updatedBy"]
        print(
            f"{property_id}: {status['status']} by {actor['name']} ({actor['id']}) "
            f"at {format_ms(status['updatedAt'])}"
        )
    if confirmation:
        print(f"Confirmed by {confirmation['staffName']} at {confirmation['confirmedAt']}")


def status_list_cmd(
    *, store_from_path, db_path: str | None, state: str, staff_id: str | None
) -> None:
    store = store_from_path(db_path)
    try:
        if state == "followup":
            items = store.follow_up_properties(staff_id)
        else:
            items = store.closed_properties(staff_id)
    finally:
        store.close()
    print_properties(items, empty=f"No {state} properties")


def status_confirm_cmd(
    *, store_from_path, db_path: str | None, property_id: str, staff_id: str, staff_name: str
) -> None:
    store = store_from_path(db_path)
    try:
        ok = store.confirm_status(property_id, staff_id, staff_name)
    finally:
        store.close()
    if not ok:
        print(f"[red]Confirmation for {property_id} was not saved[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Confirmed {property_id}[/green]")


def _load(store, property_id: str, private_for: str | None):
    if private_for:
        return store.private_notes(private_for, property_id)
    return store.staff_notes(property_id)


def _save(store, property_id: str, private_for: str | None, blocks) -> bool:
    if private_for:
        return store.save_private_notes(private_for, property_id, blocks)
    return store.save_staff_notes(property_id, blocks)


def notes_show_cmd(
    *, store_from_path, db_path: str | None, property_id: str, private_for: str | None
) -> None:
    store = store_from_path(db_path)
    try:
        blocks = _load(store, property_id, private_for)
        now_ms = store._now_ms()
    finally:
        store.close()
    if not blocks:
        print("[yellow]No notes[/yellow]")
        return
    for block in blocks:
        ago = store_notes.format_time_ago(block["last_edited_at"], now_ms)
        print(f"[bold]{block['block_id']}[/bold] {block['last_editor_name']}, {ago}")
        print(block["content"])


def notes_add_cmd(
    *,
    store_from_path,
    db_path: str | None,
    property_id: str,
    content: str,
    editor: str,
    private_for: str | None,
) -> None:
    store = store_from_path(db_path)
    try:
        blocks = _load(store, property_id, private_for)
        block = store_notes.new_block(editor, store._now_ms(), content)
        ok = _save(store, property_id, private_for, [*blocks, block])
    finally:
        store.close()
    if not ok:
        print("[red]Notes were not saved[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Added {block['block_id']}[/green]")


def notes_edit_cmd(
    *,
    store_from_path,
    db_path: str | None,
    property_id: str,
    block_id: str,
    content: str,
    editor: str,
    private_for: str | None,
) -> None:
    """Rewrite one block; an empty ``content`` deletes it on save."""

    store = store_from_path(db_path)
    try:
        blocks = _load(store, property_id, private_for)
        if not any(block["block_id"] == block_id for block in blocks):
            print(f"[red]Block {block_id} not found[/red]")
            raise typer.Exit(code=1)
        edited = store_notes.edit_block(blocks, block_id, content, editor, store._now_ms())
        ok = _save(store, property_id, private_for, edited)
    finally:
        store.close()
    if not ok:
        print("[red]Notes were not saved[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Saved {block_id}[/green]")
