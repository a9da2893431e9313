"""Push orchestration for the Deno Deploy target."""

import json
import time
from dataclasses import dataclass, field
from importlib import resources
from typing import Any, Callable, Dict, List, Optional

import click

from ..config import EdgeConfig, resolve_deploy_access_token
from ..config.bindings import Binding
from ..deno_deploy.api import DenoDeployApi
from ..errors import DeployModuleOnlyError, DeployNoDeploymentError, DeployProjectNotFoundError
from .assets import negotiate_and_deploy, reconcile_environment_variables
from .bindings import compute_environment_variables
from .bundler import BundleOptions, BundleOutput, bundle
from .parts import FileEntry
from .rewriter import rewrite_for_deploy
from .scripts import ScriptReference, resolve_script_reference, watch_target
from .watcher import ModuleWatcher
from .workers import compute_push_start

ENTRY_URL = "file:///src/app.ts"


@dataclass
class PushDeployOptions:
    name: Optional[str] = None
    access_token: Optional[str] = None
    watch: bool = False
    watch_include: List[str] = field(default_factory=list)
    get_logs: bool = False
    query_logs: bool = False
    bindings: Dict[str, Binding] = field(default_factory=dict)
    bundle: BundleOptions = field(default_factory=BundleOptions)


def load_app_adapter() -> bytes:
    """The fixed app.ts entry point that serves worker.ts on Deploy."""
    return resources.files("edgepush.deno_deploy").joinpath("app.ts").read_bytes()


def find_project(api: DenoDeployApi, project_name: str) -> Dict[str, Any]:
    project = next((p for p in api.list_projects() if p.get("name") == project_name), None)
    if project is None:
        raise DeployProjectNotFoundError(
            f"Create a new empty Deno Deploy project named '{project_name}' at https://dash.deno.com/projects"
        )
    return project


def production_deployment_id(project: Dict[str, Any]) -> str:
    deployment = (project.get("productionDeployment") or {}).get("deployment") or {}
    deployment_id = deployment.get("id")
    if deployment_id is None:
        raise DeployNoDeploymentError(f"No deployment found for project {project.get('name')}")
    return deployment_id


class DeployPusher:
    """Builds and deploys one module worker to a Deno Deploy project."""

    def __init__(
        self,
        ref: ScriptReference,
        api: DenoDeployApi,
        options: PushDeployOptions,
        bundler: Optional[Callable[[str, BundleOptions], BundleOutput]] = None,
    ):
        self.ref = ref
        self.api = api
        self.options = options
        self.bundler = bundler or bundle
        script = ref.script
        self.input_bindings: Dict[str, Binding] = {**(script.bindings if script else {}), **options.bindings}
        self.push_start = compute_push_start()
        self.push_number = 1

    @property
    def push_id(self) -> Optional[str]:
        return f"{self.push_start}.{self.push_number}" if self.options.watch else None

    def build_and_put_script(self) -> None:
        ref = self.ref
        script_name = ref.script_name
        if not ref.is_module:
            raise DeployModuleOnlyError(f"Only module-based workers are supported on Deno Deploy: {ref.root_specifier}")

        click.echo(f"bundling {script_name} into bundle.js...")
        start = time.monotonic()
        output = self.bundler(ref.root_specifier, self.options.bundle)
        click.echo(f"bundle finished ({output.backend}) in {int((time.monotonic() - start) * 1000)}ms")

        push_id = self.push_id
        push_id_suffix = f" {push_id}" if push_id else ""
        environment_variables = compute_environment_variables(self.input_bindings, push_id)

        files: Dict[str, FileEntry] = {}
        script_contents_str = rewrite_for_deploy(output.code, ref.root_specifier, files)

        click.echo(f"pushing module-based deploy worker {script_name}{push_id_suffix}...")
        start = time.monotonic()

        project = find_project(self.api, script_name)
        reconcile_environment_variables(self.api, project, environment_variables)

        files["app.ts"] = FileEntry.of(load_app_adapter())
        files["worker.ts"] = FileEntry.of(script_contents_str.encode("utf-8"))

        negotiate_and_deploy(self.api, project["id"], ENTRY_URL, files)
        click.echo(f"deployed worker to {script_name} in {int((time.monotonic() - start) * 1000)}ms")

        self.push_number += 1


def dump_logs(api: DenoDeployApi, project_name: str, live: bool) -> None:
    """Print live (streaming) or historical logs for the production deployment."""
    project = find_project(api, project_name)
    deployment_id = production_deployment_id(project)
    if live:
        for log in api.get_logs(project["id"], deployment_id):
            click.echo(json.dumps(log))
        return
    result = api.query_logs(project["id"], deployment_id, {})
    for log in (result or {}).get("logs", []):
        click.echo(json.dumps(log))


def push_deploy(script_spec: str, options: PushDeployOptions, config: EdgeConfig,
                api_factory: Callable[[str], DenoDeployApi] = DenoDeployApi) -> Optional[DeployPusher]:
    """Deploy a module worker to Deno Deploy, or dump its logs."""
    ref = resolve_script_reference(script_spec, config, options.name)
    target = watch_target(ref) if options.watch else None
    access_token = resolve_deploy_access_token(options.access_token, ref.script)
    api = api_factory(access_token)

    if options.get_logs or options.query_logs:
        dump_logs(api, ref.script_name, live=options.get_logs)
        return None

    pusher = DeployPusher(ref, api, options)
    pusher.build_and_put_script()

    if options.watch:
        ModuleWatcher(target, pusher.build_and_put_script, options.watch_include).run()
    return pusher
