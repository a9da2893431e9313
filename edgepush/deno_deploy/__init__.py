"""Deno Deploy API access for edgepush."""

from .api import API_BASE_URL, DenoDeployApi

__all__ = ["API_BASE_URL", "DenoDeployApi"]
