"""Configuration management for edgepush."""

import json
import os
from typing import NamedTuple, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError, MissingCredentialsError
from ..utils.environment import get_env
from .bindings import Binding, parse_binding, parse_binding_options
from .schema import EdgeConfig, ProfileConfig, ScriptConfig

__all__ = [
    "Binding",
    "EdgeConfig",
    "Profile",
    "ProfileConfig",
    "ScriptConfig",
    "find_config_file",
    "load_config",
    "parse_binding",
    "parse_binding_options",
    "resolve_deploy_access_token",
    "resolve_profile",
]

CONFIG_FILE_NAMES = (".edgepush.json", ".edgepush.yaml", ".edgepush.yml")


class Profile(NamedTuple):
    """Resolved credentials for the Cloudflare API."""
    account_id: str
    api_token: str


def find_config_file(directory: Optional[str] = None) -> Optional[str]:
    """Return the first config file found in directory (default: cwd)."""
    directory = directory or os.getcwd()
    for name in CONFIG_FILE_NAMES:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def load_config(config_file: Optional[str] = None) -> EdgeConfig:
    """Load configuration from a file.

    Without an explicit file the current directory is searched; if nothing is
    found an empty configuration is returned.
    """
    if config_file is None:
        config_file = find_config_file()
        if config_file is None:
            return EdgeConfig()
    elif not os.path.exists(config_file):
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        with open(config_file, "r") as f:
            if config_file.endswith((".yaml", ".yml")):
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in configuration file {config_file}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {config_file}: {e}")

    try:
        return EdgeConfig.from_dict(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}:\n{e}")


def resolve_profile(
    config: EdgeConfig,
    account_id: Optional[str] = None,
    api_token: Optional[str] = None,
    script: Optional[ScriptConfig] = None,
) -> Profile:
    """Resolve Cloudflare credentials.

    Explicit options win, then the script's named profile, then the default
    profile (or the only profile), then CF_ACCOUNT_ID / CF_API_TOKEN.
    """
    if account_id and api_token:
        return Profile(account_id, api_token)

    profile: Optional[ProfileConfig] = None
    if script is not None and script.profile:
        profile = config.profiles.get(script.profile)
        if profile is None:
            raise MissingCredentialsError(f"Profile not found: {script.profile}")
    if profile is None:
        defaults = [p for p in config.profiles.values() if p.default]
        if len(defaults) > 1:
            raise MissingCredentialsError("Multiple profiles are marked as default")
        if defaults:
            profile = defaults[0]
        elif len(config.profiles) == 1:
            profile = next(iter(config.profiles.values()))

    resolved_account_id = account_id or (profile.account_id if profile else None) or get_env("CF_ACCOUNT_ID")
    resolved_api_token = api_token or (profile.api_token if profile else None) or get_env("CF_API_TOKEN")
    if not resolved_account_id or not resolved_api_token:
        raise MissingCredentialsError(
            "Provide Cloudflare credentials via --account-id/--api-token, a config profile, "
            "or the CF_ACCOUNT_ID and CF_API_TOKEN env vars"
        )
    return Profile(resolved_account_id, resolved_api_token)


def resolve_deploy_access_token(access_token: Optional[str] = None, script: Optional[ScriptConfig] = None) -> str:
    """Resolve the Deno Deploy access token: option, script config, then DENO_DEPLOY_TOKEN."""
    token = access_token
    if token is None and script is not None:
        token = script.deploy_options().get("access-token")
    if token is None:
        token = get_env("DENO_DEPLOY_TOKEN")
    if not token:
        raise MissingCredentialsError(
            "Provide access token for deploying the worker via either --access-token, in config, "
            "or DENO_DEPLOY_TOKEN env var"
        )
    return token
