"""Push orchestration for the Cloudflare Workers target."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import click

from ..cloudflare.api import CloudflareApi, Migrations
from ..config import EdgeConfig, resolve_profile
from ..config.bindings import Binding
from ..errors import BadScriptSpecError
from ..utils.security import get_secure_logger
from .bindings import compute_bindings
from .bundler import BundleOptions, BundleOutput, bundle
from .domains import ensure_custom_domains, ensure_workers_dev
from .durable_objects import DurableObjectNamespaces
from .parts import PartsMap, compute_size_report
from .rewriter import read_location, rewrite_for_workers
from .scripts import ScriptReference, resolve_script_reference, watch_target
from .watcher import ModuleWatcher

logger = get_secure_logger(__name__)


@dataclass
class PushOptions:
    """Options for ``push``; None means fall back to the script config."""
    name: Optional[str] = None
    watch: bool = False
    watch_include: List[str] = field(default_factory=list)
    custom_domains: Optional[List[str]] = None
    workers_dev: Optional[bool] = None
    logpush: Optional[bool] = None
    compatibility_date: Optional[str] = None
    compatibility_flags: Optional[List[str]] = None
    delete_classes: List[str] = field(default_factory=list)
    bindings: Dict[str, Binding] = field(default_factory=dict)
    bundle: BundleOptions = field(default_factory=BundleOptions)
    account_id: Optional[str] = None
    api_token: Optional[str] = None


def compute_push_start() -> str:
    """UTC timestamp with seconds precision, e.g. 2024-01-02T03:04:05Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def compute_migrations(delete_classes: Optional[List[str]]) -> Optional[Migrations]:
    deleted_classes = list(delete_classes or [])
    if not deleted_classes:
        return None
    return Migrations(tag=f"delete-{'-'.join(deleted_classes)}", deleted_classes=deleted_classes)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class WorkersPusher:
    """Builds and uploads one script; call build_and_put_script() once per push."""

    def __init__(
        self,
        ref: ScriptReference,
        api: CloudflareApi,
        options: PushOptions,
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

    def _script_setting(self, option_value, config_attr: str):
        if option_value is not None:
            return option_value
        return getattr(self.ref.script, config_attr) if self.ref.script else None

    def _load_script_contents(self) -> str:
        ref = self.ref
        if ref.is_module:
            click.echo(f"bundling {ref.script_name} into bundle.js...")
            start = time.monotonic()
            output = self.bundler(ref.root_specifier, self.options.bundle)
            click.echo(f"bundle finished ({output.backend}) in {_elapsed_ms(start)}ms")
            return output.code
        try:
            return read_location(ref.root_specifier).decode("utf-8")
        except UnicodeDecodeError as e:
            raise BadScriptSpecError(f"Script is not valid UTF-8: {ref.root_specifier} ({e})")

    def build_and_put_script(self) -> None:
        ref, api, options = self.ref, self.api, self.options
        script_name = ref.script_name
        script_contents_str = self._load_script_contents()

        start = time.monotonic()
        do_namespaces = DurableObjectNamespaces(api)
        push_id = self.push_id
        push_id_suffix = f" {push_id}" if push_id else ""
        usage_model = ref.script.usage_model if ref.script else None
        logpush = self._script_setting(options.logpush, "logpush")
        compatibility_date = self._script_setting(options.compatibility_date, "compatibility_date")
        compatibility_flags = self._script_setting(options.compatibility_flags or None, "compatibility_flags")
        parts = PartsMap()
        bindings = compute_bindings(self.input_bindings, script_name, do_namespaces, parts, push_id)
        click.echo(f"computed bindings in {_elapsed_ms(start)}ms")

        # migrations only on the first upload, never on --watch re-uploads
        migrations = compute_migrations(options.delete_classes) if self.push_number == 1 else None

        if ref.is_module:
            script_contents_str = rewrite_for_workers(script_contents_str, ref.root_specifier, parts)
        script_contents = script_contents_str.encode("utf-8")
        size = compute_size_report(script_contents, parts.values())

        kind = "module" if ref.is_module else "script"
        worker = f"{usage_model} worker" if usage_model else "worker"
        click.echo(f"putting {kind}-based {worker} {script_name}{push_id_suffix}... {size}")
        if migrations is not None:
            click.echo(f"  migration will delete durable object class(es): {', '.join(migrations.deleted_classes)}")

        start = time.monotonic()
        api.put_script(
            script_name=script_name,
            script_contents=script_contents,
            bindings=bindings,
            parts=parts.values(),
            is_module=ref.is_module,
            migrations=migrations,
            usage_model=usage_model,
            logpush=logpush,
            compatibility_date=compatibility_date,
            compatibility_flags=compatibility_flags,
        )
        click.echo(f"put script {script_name}{push_id_suffix} in {_elapsed_ms(start)}ms")

        if do_namespaces.has_pending_updates():
            start = time.monotonic()
            do_namespaces.flush_pending_updates()
            click.echo(f"updated durable object namespaces in {_elapsed_ms(start)}ms")

        # custom domains and workers.dev only on the first upload
        if self.push_number == 1:
            self._configure_routes()

        self.push_number += 1

    def _configure_routes(self) -> None:
        script_name = self.ref.script_name
        custom_domains = self._script_setting(self.options.custom_domains or None, "custom_domains") or []
        if custom_domains:
            start = time.monotonic()
            ensure_custom_domains(self.api, custom_domains, script_name)
            label = "custom domain" if len(custom_domains) == 1 else f"{len(custom_domains)} custom domains"
            click.echo(f"bound worker to {label} in {_elapsed_ms(start)}ms")

        workers_dev = self._script_setting(self.options.workers_dev, "workers_dev")
        # unset on both the command line and in config: leave the route alone
        if isinstance(workers_dev, bool):
            start = time.monotonic()
            route = ensure_workers_dev(self.api, script_name, workers_dev)
            click.echo(f"{'enabled' if workers_dev else 'disabled'} {route} route in {_elapsed_ms(start)}ms")


def push(script_spec: str, options: PushOptions, config: EdgeConfig,
         api_factory: Callable[[str, str], CloudflareApi] = CloudflareApi) -> WorkersPusher:
    """Push a worker to Cloudflare, then keep re-pushing on change if watching."""
    ref = resolve_script_reference(script_spec, config, options.name)
    target = watch_target(ref) if options.watch else None
    profile = resolve_profile(config, options.account_id, options.api_token, ref.script)
    api = api_factory(profile.account_id, profile.api_token)
    pusher = WorkersPusher(ref, api, options)
    pusher.build_and_put_script()

    if options.watch:
        ModuleWatcher(target, pusher.build_and_put_script, options.watch_include).run()
    return pusher
