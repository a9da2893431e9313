"""Command-line interface for edgepush."""

import logging
import os

import click

from .. import __version__
from ..utils.environment import apply_env_file
from .commands_d1 import d1_group
from .commands_push import push_command
from .commands_push_deploy import push_deploy_command

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("edgepush").setLevel(logging.DEBUG if verbose else logging.INFO)


@click.group()
@click.version_option(__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--env-file",
    default=".env",
    help="Path to environment file",
    show_default=True,
)
def cli(verbose: bool, env_file: str):
    """Push edge worker scripts to Cloudflare Workers and Deno Deploy."""
    configure_logging(verbose)
    if os.path.exists(env_file):
        applied = apply_env_file(env_file)
        logger.debug(f"Loaded {len(applied)} environment variables from {env_file}")


# Register all commands
cli.add_command(push_command)
cli.add_command(push_deploy_command)
cli.add_command(d1_group)
