"""Cloudflare API access for edgepush."""

from .api import API_BASE_URL, CloudflareApi, Migrations, Part

__all__ = ["API_BASE_URL", "CloudflareApi", "Migrations", "Part"]
