from pathlib import Path

import pytest
from typer.testing import CliRunner

from rentsync.cli_app import app

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "cli.sqlite")


def test_root_help_lists_command_groups() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("properties", "bookmarks", "status", "notes", "catalog", "watch"):
        assert name in result.stdout


def test_bookmarks_help_lists_lifecycle_actions() -> None:
    result = runner.invoke(app, ["bookmarks", "--help"])
    assert result.exit_code == 0
    for name in ("add", "remove", "restore", "purge", "removed"):
        assert name in result.stdout


def test_create_and_list_properties(db_path: str) -> None:
    record = '{"id": "p1", "propertyTitle": "Flat", "price": 500000}'
    created = runner.invoke(
        app, ["properties", "create", record, "--owner", "u1", "--db-path", db_path]
    )
    assert created.exit_code == 0
    assert "Created property p1" in created.stdout

    listed = runner.invoke(app, ["properties", "list", "u1", "--db-path", db_path])
    assert listed.exit_code == 0
    assert "p1" in listed.stdout

    denied = runner.invoke(
        app, ["properties", "delete", "p1", "--user", "u2", "--db-path", db_path]
    )
    assert denied.exit_code == 1


def test_create_rejects_bad_json(db_path: str) -> None:
    result = runner.invoke(app, ["properties", "create", "{nope", "--db-path", db_path])
    assert result.exit_code == 1
    assert "Invalid property JSON" in result.stdout


def test_bookmark_commands(db_path: str) -> None:
    assert runner.invoke(app, ["bookmarks", "add", "p1", "--db-path", db_path]).exit_code == 0
    assert runner.invoke(app, ["bookmarks", "remove", "p1", "--db-path", db_path]).exit_code == 0

    removed = runner.invoke(app, ["bookmarks", "removed", "--db-path", db_path])
    assert removed.exit_code == 0
    assert "p1" in removed.stdout

    missing = runner.invoke(app, ["bookmarks", "restore", "ghost", "--db-path", db_path])
    assert missing.exit_code == 1


def test_status_set_and_show(db_path: str) -> None:
    args = ["--staff-id", "staffA", "--staff-name", "Asha", "--db-path", db_path]
    assert runner.invoke(app, ["status", "set", "p1", "closed", *args]).exit_code == 0

    shown = runner.invoke(app, ["status", "show", "p1", "--db-path", db_path])
    assert shown.exit_code == 0
    assert "closed" in shown.stdout
    assert "Asha" in shown.stdout

    bad = runner.invoke(app, ["status", "set", "p1", "archived", *args])
    assert bad.exit_code == 1


def test_notes_add_and_show(db_path: str) -> None:
    added = runner.invoke(
        app,
        ["notes", "add", "p1", "Keys with caretaker", "--editor", "Asha", "--db-path", db_path],
    )
    assert added.exit_code == 0

    shown = runner.invoke(app, ["notes", "show", "p1", "--db-path", db_path])
    assert shown.exit_code == 0
    assert "Keys with caretaker" in shown.stdout
    assert "Asha" in shown.stdout


def test_invalid_config_exits(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "bad.json"
    config_path.write_text("{broken")
    monkeypatch.setenv("RENTSYNC_CONFIG", str(config_path))

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 1
    assert "invalid config json" in result.stdout
