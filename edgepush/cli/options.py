"""Options and error handling shared by edgepush commands."""

import functools
import logging
import sys
from typing import Callable

import click

from ..errors import EdgePushError

logger = logging.getLogger(__name__)


def config_options(f: Callable) -> Callable:
    """--config plus Cloudflare credential overrides."""
    f = click.option("--config", "config_file", help="Path to .edgepush.json / .edgepush.yaml config file")(f)
    f = click.option("--account-id", help="Cloudflare account id (overrides config profile)")(f)
    f = click.option("--api-token", help="Cloudflare API token (overrides config profile)")(f)
    return f


BINDING_FLAGS = [
    ("--text-binding", "text_binding", "name:plain-text"),
    ("--secret-binding", "secret_binding", "name:secret-text"),
    ("--kv-namespace-binding", "kv_namespace_binding", "name:namespace-id"),
    ("--do-namespace-binding", "do_namespace_binding", "name:namespace-name:ClassName"),
    ("--wasm-module-binding", "wasm_module_binding", "name:path/to/module.wasm"),
    ("--service-binding", "service_binding", "name:service:environment"),
    ("--r2-bucket-binding", "r2_bucket_binding", "name:bucket-name"),
    ("--ae-dataset-binding", "ae_dataset_binding", "name:dataset"),
    ("--d1-database-binding", "d1_database_binding", "name:database-uuid"),
    ("--queue-binding", "queue_binding", "name:queue-name"),
    ("--secret-key-binding", "secret_key_binding", "name:json-descriptor"),
]


def binding_options(f: Callable) -> Callable:
    """Repeatable ad-hoc bindings, merged over the script's config bindings."""
    f = click.option("--browser-binding", "browser_binding", multiple=True, metavar="NAME",
                     help="Browser rendering binding")(f)
    for flag, dest, hint in reversed(BINDING_FLAGS):
        f = click.option(flag, dest, multiple=True, metavar="TEXT", help=f"Add a binding, as {hint}")(f)
    return f


def pop_binding_options(kwargs: dict) -> dict:
    """Remove binding options from a command's kwargs and return them."""
    names = [dest for _, dest, _ in BINDING_FLAGS] + ["browser_binding"]
    return {name: kwargs.pop(name, ()) for name in names}


def bundle_options(f: Callable) -> Callable:
    return click.option("--bundle", "bundle_opts", multiple=True, metavar="KEY=VALUE",
                        help="Bundler options, e.g. backend=esbuild or minify=true")(f)


def handle_errors(f: Callable) -> Callable:
    """Report edgepush errors as a one-line message and exit 1."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except EdgePushError as e:
            logger.debug(f"{e.kind}: {e}", exc_info=True)
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except OSError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return wrapper
