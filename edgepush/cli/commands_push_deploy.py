"""The ``push-deploy`` command: upload a module worker to Deno Deploy."""

from typing import Optional, Tuple

import click

from ..config import load_config, parse_binding_options
from ..push.bundler import parse_bundle_opts
from ..push.deploy import PushDeployOptions, push_deploy
from .options import binding_options, bundle_options, handle_errors, pop_binding_options


@click.command(name="push-deploy")
@click.argument("script_spec")
@click.option("--name", help="Project name in Deno Deploy [default: config script name, or url/file basename sans extension]")
@click.option("--access-token", "--accessToken", "access_token",
              help="Personal access token from the Deploy dashboard (or set DENO_DEPLOY_TOKEN)")
@click.option("--watch", is_flag=True, help="Watch the local file system and re-deploy on script changes")
@click.option("--watch-include", "--watchInclude", "watch_include", multiple=True, metavar="PATH",
              help="If watching, watch this additional path as well")
@click.option("--get-logs", "--getLogs", "get_logs", is_flag=True,
              help="Stream live logs of the production deployment instead of pushing")
@click.option("--query-logs", "--queryLogs", "query_logs", is_flag=True,
              help="Print recent logs of the production deployment instead of pushing")
@click.option("--config", "config_file", help="Path to .edgepush.json / .edgepush.yaml config file")
@binding_options
@bundle_options
@handle_errors
def push_deploy_command(
    script_spec: str,
    name: Optional[str],
    access_token: Optional[str],
    watch: bool,
    watch_include: Tuple[str, ...],
    get_logs: bool,
    query_logs: bool,
    config_file: Optional[str],
    bundle_opts: Tuple[str, ...],
    **kwargs,
):
    """Upload a module-based worker to Deno Deploy."""
    config = load_config(config_file)
    options = PushDeployOptions(
        name=name,
        access_token=access_token,
        watch=watch,
        watch_include=list(watch_include),
        get_logs=get_logs,
        query_logs=query_logs,
        bindings=parse_binding_options(**pop_binding_options(kwargs)),
        bundle=parse_bundle_opts(bundle_opts),
    )
    push_deploy(script_spec, options, config)
