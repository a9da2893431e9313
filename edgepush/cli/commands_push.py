"""The ``push`` command: upload a worker script to Cloudflare Workers."""

from typing import Optional, Tuple

import click

from ..config import load_config, parse_binding_options
from ..push.bundler import parse_bundle_opts
from ..push.workers import PushOptions, push
from .options import binding_options, bundle_options, config_options, handle_errors, pop_binding_options


@click.command(name="push")
@click.argument("script_spec")
@click.option("--name", help="Name to use for the worker script [default: config script name, or url/file basename sans extension]")
@click.option("--watch", is_flag=True, help="Watch the local file system and re-upload on script changes")
@click.option("--watch-include", "--watchInclude", "watch_include", multiple=True, metavar="PATH",
              help="If watching, watch this additional path as well")
@click.option("--custom-domain", "--customDomain", "custom_domain", multiple=True, metavar="HOSTNAME",
              help="Bind the worker to one or more Custom Domains")
@click.option("--workers-dev/--no-workers-dev", "--workersDev/--no-workersDev", "workers_dev", default=None,
              help="Enable or disable the worker's workers.dev route")
@click.option("--logpush/--no-logpush", default=None, help="Enable or disable logpush for the worker")
@click.option("--compatibility-date", "--compatibilityDate", "compatibility_date",
              help="Compatibility date for the worker, e.g. 2024-01-01")
@click.option("--compatibility-flag", "--compatibilityFlag", "compatibility_flag", multiple=True,
              help="Compatibility flag for the worker")
@click.option("--delete-class", "--deleteClass", "delete_class", multiple=True, metavar="CLASS_NAME",
              help="Delete an obsolete Durable Object class (and all its data!) as part of the upload")
@binding_options
@bundle_options
@config_options
@handle_errors
def push_command(
    script_spec: str,
    name: Optional[str],
    watch: bool,
    watch_include: Tuple[str, ...],
    custom_domain: Tuple[str, ...],
    workers_dev: Optional[bool],
    logpush: Optional[bool],
    compatibility_date: Optional[str],
    compatibility_flag: Tuple[str, ...],
    delete_class: Tuple[str, ...],
    bundle_opts: Tuple[str, ...],
    config_file: Optional[str],
    account_id: Optional[str],
    api_token: Optional[str],
    **kwargs,
):
    """Upload a worker script to Cloudflare.

    SCRIPT_SPEC is a script name from the config file, a path to a bundled
    .js worker, or a path/https url to a module-based .ts worker.
    """
    config = load_config(config_file)
    options = PushOptions(
        name=name,
        watch=watch,
        watch_include=list(watch_include),
        custom_domains=list(custom_domain) or None,
        workers_dev=workers_dev,
        logpush=logpush,
        compatibility_date=compatibility_date,
        compatibility_flags=list(compatibility_flag) or None,
        delete_classes=list(delete_class),
        bindings=parse_binding_options(**pop_binding_options(kwargs)),
        bundle=parse_bundle_opts(bundle_opts),
        account_id=account_id,
        api_token=api_token,
    )
    push(script_spec, options, config)
