"""D1 database management operations."""

import json
import os
import time
from typing import Any, Dict, List, Optional, Tuple

import click
from tabulate import tabulate

from .cloudflare.api import CloudflareApi
from .errors import DatabaseNotFoundError, RemoteCallError
from .utils.bytes import format_size

LOCATIONS = {
    "weur": "Western Europe",
    "eeur": "Eastern Europe",
    "apac": "Asia Pacific",
    "wnam": "Western North America",
    "enam": "Eastern North America",
}


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def find_database_uuid(api: CloudflareApi, database_name: str) -> str:
    database = next((db for db in api.list_d1_databases() if db.get("name") == database_name), None)
    if database is None:
        raise DatabaseNotFoundError(database_name)
    return database["uuid"]


def list_databases(api: CloudflareApi) -> List[Dict[str, Any]]:
    databases = api.list_d1_databases()
    rows = [[db.get("name"), db.get("uuid"), db.get("created_at", ""), db.get("version", "")] for db in databases]
    click.echo(tabulate(rows, headers=["Name", "UUID", "Created", "Version"], tablefmt="simple"))
    return databases


def create_database(api: CloudflareApi, database_name: str, location: Optional[str] = None,
                    experimental_backend: bool = False) -> Dict[str, Any]:
    if location is not None and location not in LOCATIONS:
        raise click.BadParameter(f"Unknown location {location}, expected one of {', '.join(LOCATIONS)}")
    db = api.create_d1_database(database_name, location=location, experimental_backend=experimental_backend)
    click.echo(json.dumps(db, indent=2))
    return db


def drop_database(api: CloudflareApi, database_name: str) -> None:
    database_uuid = find_database_uuid(api, database_name)
    api.delete_d1_database(database_uuid)
    click.echo(f"Dropped database {database_name} ({database_uuid})")


def query_database(api: CloudflareApi, database_name: str, sql: Optional[str],
                   params: Optional[List[str]] = None) -> Any:
    if not sql:
        raise click.UsageError("Provide a query with --sql")
    database_uuid = find_database_uuid(api, database_name)
    results = api.query_d1_database(database_uuid, sql, list(params or []))
    click.echo(json.dumps(results, indent=2))
    return results


def _take_backup(api: CloudflareApi, database_uuid: str) -> Dict[str, Any]:
    start = time.monotonic()
    backup = api.create_d1_backup(database_uuid)
    click.echo(f"Backup {backup['id']} ({format_size(backup['file_size'])}) took {_elapsed_ms(start)}ms")
    return backup


def backup_database(api: CloudflareApi, database_name: str) -> Dict[str, Any]:
    database_uuid = find_database_uuid(api, database_name)
    return _take_backup(api, database_uuid)


def format_backup_listing(backups: List[Dict[str, Any]], database_uuid: str) -> List[str]:
    """Lines for list-backups: ascending by created_at, blank line between days, total last."""
    lines: List[str] = []
    prev_day: Optional[str] = None
    for backup in sorted(backups, key=lambda b: b["created_at"]):
        if backup.get("database_id") != database_uuid:
            raise RemoteCallError(
                f"Backup {backup.get('id')} belongs to database {backup.get('database_id')}, expected {database_uuid}"
            )
        created = backup["created_at"][:len("2022-07-02T00:37:22")]
        day = created[:len("2022-07-02")]
        if prev_day is not None and day != prev_day:
            lines.append("")
        lines.append(
            f"{backup['id']} {created} state={backup.get('state')} tables={backup.get('num_tables')} "
            f"size={format_size(backup.get('file_size', 0))}"
        )
        prev_day = day
    lines.append(f"{len(backups)} backups")
    return lines


def list_backups(api: CloudflareApi, database_name: str) -> List[str]:
    database_uuid = find_database_uuid(api, database_name)
    lines = format_backup_listing(api.list_d1_backups(database_uuid), database_uuid)
    for line in lines:
        click.echo(line)
    return lines


def restore_backup(api: CloudflareApi, database_name: str, backup_id: str) -> None:
    database_uuid = find_database_uuid(api, database_name)
    start = time.monotonic()
    api.restore_d1_backup(database_uuid, backup_id)
    click.echo(f"Restore of backup {backup_id} took {_elapsed_ms(start)}ms")


def download_backup(api: CloudflareApi, database_name: str, file: str,
                    backup_id: Optional[str] = None) -> Tuple[str, int]:
    """Download a backup (a fresh one unless backup_id is given) to file; returns (path, size)."""
    database_uuid = find_database_uuid(api, database_name)
    backup_uuid = backup_id or _take_backup(api, database_uuid)["id"]

    start = time.monotonic()
    data = api.download_d1_backup(database_uuid, backup_uuid)
    click.echo(f"Download of backup {backup_uuid} ({format_size(len(data))}) took {_elapsed_ms(start)}ms")

    with open(file, "wb") as f:
        f.write(data)
    path = os.path.normpath(os.path.join(os.getcwd(), file))
    click.echo(f"Saved to {path}")
    return path, len(data)
