"""The ``d1`` command group: manage and query Cloudflare D1 databases."""

from typing import Optional, Tuple

import click

from .. import d1
from ..cloudflare.api import CloudflareApi
from ..config import load_config, resolve_profile
from .options import config_options, handle_errors


def _api(config_file: Optional[str], account_id: Optional[str], api_token: Optional[str]) -> CloudflareApi:
    profile = resolve_profile(load_config(config_file), account_id, api_token)
    return CloudflareApi(profile.account_id, profile.api_token)


@click.group(name="d1")
def d1_group():
    """Manage and query your Cloudflare D1 databases."""
    pass


@d1_group.command(name="list")
@config_options
@handle_errors
def list_command(config_file, account_id, api_token):
    """List databases."""
    d1.list_databases(_api(config_file, account_id, api_token))


@d1_group.command(name="create")
@click.argument("database_name")
@click.option("--location", type=click.Choice(list(d1.LOCATIONS)),
              help="Hint for the database's primary location: "
                   + ", ".join(f"{k} ({v})" for k, v in d1.LOCATIONS.items()))
@click.option("--experimental-backend", "--experimentalBackend", "experimental_backend", is_flag=True,
              help="Use the new experimental database backend")
@config_options
@handle_errors
def create_command(database_name, location, experimental_backend, config_file, account_id, api_token):
    """Create a database."""
    d1.create_database(_api(config_file, account_id, api_token), database_name,
                       location=location, experimental_backend=experimental_backend)


@d1_group.command(name="drop")
@click.argument("database_name")
@config_options
@handle_errors
def drop_command(database_name, config_file, account_id, api_token):
    """Drop a database."""
    d1.drop_database(_api(config_file, account_id, api_token), database_name)


@d1_group.command(name="query")
@click.argument("database_name")
@click.option("--sql", help="SQL query to execute")
@click.option("--param", multiple=True, metavar="VALUE", help="Ordinal parameter for the query")
@config_options
@handle_errors
def query_command(database_name, sql: Optional[str], param: Tuple[str, ...], config_file, account_id, api_token):
    """Query a database."""
    d1.query_database(_api(config_file, account_id, api_token), database_name, sql, list(param))


@d1_group.command(name="backup")
@click.argument("database_name")
@config_options
@handle_errors
def backup_command(database_name, config_file, account_id, api_token):
    """Backup a database."""
    d1.backup_database(_api(config_file, account_id, api_token), database_name)


@d1_group.command(name="list-backups")
@click.argument("database_name")
@config_options
@handle_errors
def list_backups_command(database_name, config_file, account_id, api_token):
    """List all backups for a database."""
    d1.list_backups(_api(config_file, account_id, api_token), database_name)


@d1_group.command(name="restore")
@click.argument("database_name")
@click.option("--backup-id", "--backupId", "backup_id", required=True, metavar="UUID",
              help="Uuid of the backup to restore")
@config_options
@handle_errors
def restore_command(database_name, backup_id, config_file, account_id, api_token):
    """Restore a database from a previous backup."""
    d1.restore_backup(_api(config_file, account_id, api_token), database_name, backup_id)


@d1_group.command(name="download")
@click.argument("database_name")
@click.option("--file", "file", required=True, metavar="PATH",
              help="Local file path at which to save the sqlite db file")
@click.option("--backup-id", "--backupId", "backup_id", metavar="UUID",
              help="Uuid of the backup to download (default: take a new backup and download that)")
@config_options
@handle_errors
def download_command(database_name, file, backup_id, config_file, account_id, api_token):
    """Download a database as a sqlite3 db file."""
    d1.download_backup(_api(config_file, account_id, api_token), database_name, file, backup_id)
