from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any

import typer
from rich import print

from rentsync.config import RentsyncConfig, load_config, read_config_file
from rentsync.store import DisplayProperty


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def load_config_or_exit() -> RentsyncConfig:
    read_config_or_exit()
    return load_config()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_json_object_or_exit(text: str, *, what: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"[red]Invalid {what} JSON: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not isinstance(data, dict):
        print(f"[red]{what} must be a JSON object[/red]")
        raise typer.Exit(code=1)
    return data


def format_ms(value: int) -> str:
    if not value:
        return "-"
    return dt.datetime.fromtimestamp(value / 1000, dt.UTC).isoformat(timespec="seconds")


def property_line(prop: DisplayProperty) -> str:
    origin = "seed" if prop.is_seed else (prop.owner_id or "unowned")
    return (
        f"- {prop.id} [bold]{prop.title}[/bold] {prop.location} "
        f"price={prop.price}/{prop.pricing_unit} status={prop.status} owner={origin}"
    )


def print_properties(items: list[DisplayProperty], *, empty: str) -> None:
    if not items:
        print(f"[yellow]{empty}[/yellow]")
        return
    for prop in items:
        print(property_line(prop))
