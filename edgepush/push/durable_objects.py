"""Durable Object namespace reconciliation."""

import re
from typing import List, NamedTuple, Tuple

import click

from ..cloudflare.api import CloudflareApi
from ..errors import BadDurableObjectNamespaceSpecError

NAMESPACE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


class PendingUpdate(NamedTuple):
    id: str
    name: str
    script: str
    class_name: str


def parse_namespace_spec(namespace_spec: str) -> Tuple[str, str]:
    """Split a ``name:ClassName`` spec."""
    tokens = namespace_spec.split(":")
    if len(tokens) != 2:
        raise BadDurableObjectNamespaceSpecError(f"Bad durable object namespace spec: {namespace_spec}")
    name, class_name = tokens
    if not NAMESPACE_NAME_PATTERN.match(name):
        raise BadDurableObjectNamespaceSpecError(f"Bad durable object namespace name: {name!r}")
    if not class_name:
        raise BadDurableObjectNamespaceSpecError(f"Bad durable object class name in spec: {namespace_spec}")
    return name, class_name


class DurableObjectNamespaces:
    """Looks up or creates namespaces and queues script/class updates.

    One instance per push: updates can only be applied once the script that
    defines the class has been uploaded, so they are held until
    flush_pending_updates() is called.
    """

    def __init__(self, api: CloudflareApi):
        self.api = api
        self.pending_updates: List[PendingUpdate] = []

    def get_or_create_namespace_id(self, namespace_spec: str, script_name: str) -> str:
        name, class_name = parse_namespace_spec(namespace_spec)
        namespaces = self.api.list_durable_objects_namespaces()
        namespace = next((v for v in namespaces if v.get("name") == name), None)
        if namespace is None:
            click.echo(f"Creating new durable object namespace: {name}")
            namespace = self.api.create_durable_objects_namespace(name)
        if namespace.get("class") != class_name or namespace.get("script") != script_name:
            self.pending_updates.append(PendingUpdate(namespace["id"], name, script_name, class_name))
        return namespace["id"]

    def has_pending_updates(self) -> bool:
        return len(self.pending_updates) > 0

    def flush_pending_updates(self) -> None:
        for update in self.pending_updates:
            click.echo(f"Updating durable object namespace {update.name}: script={update.script}, class={update.class_name}")
            self.api.update_durable_objects_namespace(
                update.id, name=update.name, script=update.script, class_name=update.class_name
            )
        self.pending_updates.clear()
