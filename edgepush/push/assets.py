"""Content-addressed asset upload and environment reconciliation for Deno Deploy."""

import json
from typing import Any, Callable, Dict, List

import click

from ..deno_deploy.api import DenoDeployApi
from .parts import FileEntry, build_manifest


def reconcile_environment_variables(api: DenoDeployApi, project: Dict[str, Any], variables: Dict[str, str]) -> bool:
    """Replace the project's variables when the set of names differs; returns True if updated."""
    current = set(project.get("envVars") or [])
    if current == set(variables):
        return False
    click.echo("updating project environment variables")
    api.set_environment_variables(project["id"], variables)
    return True


def select_missing_files(files: Dict[str, FileEntry], missing_hashes: List[str]) -> List[bytes]:
    missing = set(missing_hashes)
    uploaded = set()
    bodies = []
    for entry in files.values():
        # identical content under two paths is uploaded once
        if entry.git_sha1 in missing and entry.git_sha1 not in uploaded:
            uploaded.add(entry.git_sha1)
            bodies.append(entry.bytes)
    return bodies


def echo_event(event: Dict[str, Any]) -> None:
    click.echo(json.dumps(event))


def negotiate_and_deploy(
    api: DenoDeployApi,
    project_id: str,
    entry_url: str,
    files: Dict[str, FileEntry],
    on_event: Callable[[Dict[str, Any]], None] = echo_event,
) -> int:
    """Upload only the files the server lacks and deploy; returns the number of bodies sent."""
    manifest = build_manifest(files)
    request = {
        "url": entry_url,
        "importMapUrl": None,
        "production": True,
        "manifest": manifest,
    }
    missing_hashes = api.negotiate_assets(project_id, manifest)
    bodies = select_missing_files(files, missing_hashes)
    click.echo(f"updatedFiles: {len(bodies)}")
    for event in api.deploy(project_id, request, bodies):
        on_event(event)
    return len(bodies)
