"""Tests for D1 database operations."""

from unittest.mock import MagicMock

import click
import pytest

from edgepush import d1
from edgepush.errors import DatabaseNotFoundError, RemoteCallError


@pytest.fixture
def api():
    api = MagicMock()
    api.list_d1_databases.return_value = [
        {"name": "mydb", "uuid": "db1", "created_at": "2024-01-01T00:00:00Z", "version": "beta"},
    ]
    return api


def _backup(backup_id, created_at, database_id="db1"):
    return {"id": backup_id, "created_at": created_at, "database_id": database_id,
            "state": "done", "num_tables": 2, "file_size": 2048}


def test_find_database_uuid(api):
    assert d1.find_database_uuid(api, "mydb") == "db1"


def test_find_database_uuid_missing(api):
    with pytest.raises(DatabaseNotFoundError) as exc_info:
        d1.find_database_uuid(api, "other")
    assert str(exc_info.value) == "Database not found: other"


def test_list_databases_table(api, capsys):
    d1.list_databases(api)
    out = capsys.readouterr().out
    assert "Name" in out
    assert "mydb" in out
    assert "db1" in out


def test_backup_listing_groups_by_day():
    backups = [
        _backup("b3", "2022-07-03T10:00:00.123Z"),
        _backup("b1", "2022-07-02T00:37:22.456Z"),
        _backup("b2", "2022-07-02T12:00:00.000Z"),
    ]

    lines = d1.format_backup_listing(backups, "db1")

    assert lines == [
        "b1 2022-07-02T00:37:22 state=done tables=2 size=2.0kb",
        "b2 2022-07-02T12:00:00 state=done tables=2 size=2.0kb",
        "",
        "b3 2022-07-03T10:00:00 state=done tables=2 size=2.0kb",
        "3 backups",
    ]


def test_backup_listing_empty():
    assert d1.format_backup_listing([], "db1") == ["0 backups"]


def test_backup_listing_rejects_foreign_backup():
    with pytest.raises(RemoteCallError):
        d1.format_backup_listing([_backup("b1", "2022-07-02T00:00:00Z", database_id="db2")], "db1")


def test_query_requires_sql(api):
    with pytest.raises(click.UsageError):
        d1.query_database(api, "mydb", None)
    api.query_d1_database.assert_not_called()


def test_query_passes_params(api, capsys):
    api.query_d1_database.return_value = [{"results": [{"n": 1}], "success": True}]

    d1.query_database(api, "mydb", "select ?1 as n", ["1"])

    api.query_d1_database.assert_called_once_with("db1", "select ?1 as n", ["1"])
    assert '"n": 1' in capsys.readouterr().out


def test_download_takes_fresh_backup(api, tmp_path, capsys):
    api.create_d1_backup.return_value = {"id": "fresh", "file_size": 4}
    api.download_d1_backup.return_value = b"data"
    target = tmp_path / "backup.sqlite"

    path, size = d1.download_backup(api, "mydb", str(target))

    api.create_d1_backup.assert_called_once_with("db1")
    api.download_d1_backup.assert_called_once_with("db1", "fresh")
    assert target.read_bytes() == b"data"
    assert size == 4
    assert path == str(target)
    assert f"Saved to {target}" in capsys.readouterr().out


def test_download_existing_backup(api, tmp_path):
    api.download_d1_backup.return_value = b"data"

    d1.download_backup(api, "mydb", str(tmp_path / "b.sqlite"), backup_id="b1")

    api.create_d1_backup.assert_not_called()
    api.download_d1_backup.assert_called_once_with("db1", "b1")


def test_restore_backup(api):
    d1.restore_backup(api, "mydb", "b1")
    api.restore_d1_backup.assert_called_once_with("db1", "b1")


def test_create_database_rejects_unknown_location(api):
    with pytest.raises(click.BadParameter):
        d1.create_database(api, "newdb", location="mars")
