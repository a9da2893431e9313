"""Custom domain binding and workers.dev route toggling."""

from typing import Any, Dict, List, Sequence

import click

from ..cloudflare.api import CloudflareApi
from ..errors import ZoneAmbiguousError, ZoneNotFoundError, ZoneNotUsableError


def find_parent_zone(hostname: str, zones: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the single zone that hostname belongs to, checking it is usable."""
    candidates = [z for z in zones if hostname == z["name"] or hostname.endswith("." + z["name"])]
    if not candidates:
        raise ZoneNotFoundError(
            f"Unable to locate the parent zone for {hostname}, do you have permissions to edit zones?"
        )
    if len(candidates) > 1:
        names = ", ".join(z["name"] for z in candidates)
        raise ZoneAmbiguousError(f"Unable to locate the parent zone for {hostname}, multiple candidates: {names}")
    zone = candidates[0]
    expected = {"paused": False, "status": "active", "type": "full"}
    for key, value in expected.items():
        if zone.get(key) != value:
            raise ZoneNotUsableError(
                f"Zone {zone['name']} for {hostname} is not usable: {key}={zone.get(key)!r}, expected {value!r}"
            )
    return zone


def ensure_custom_domain_exists(api: CloudflareApi, hostname: str, zones: Sequence[Dict[str, Any]], script_name: str) -> None:
    click.echo(f"ensuring {hostname} points to {script_name}...")
    zone = find_parent_zone(hostname, zones)
    # idempotent on the server side
    api.put_workers_domain(hostname=hostname, zone_id=zone["id"], service=script_name, environment="production")


def ensure_custom_domains(api: CloudflareApi, hostnames: List[str], script_name: str) -> None:
    zones = api.list_zones(per_page=1000)
    for hostname in hostnames:
        ensure_custom_domain_exists(api, hostname, zones, script_name)


def ensure_workers_dev(api: CloudflareApi, script_name: str, workers_dev: bool) -> str:
    """Enable or disable the <script>.<subdomain>.workers.dev route; returns the route host."""
    subdomain = api.get_workers_subdomain()
    enabled = api.get_worker_service_subdomain_enabled(script_name)
    if enabled != workers_dev:
        api.set_worker_service_subdomain_enabled(script_name, workers_dev)
    return f"{script_name}.{subdomain}.workers.dev"
