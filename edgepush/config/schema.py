"""Configuration schema definitions for edgepush."""

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ConfigError
from .bindings import Binding, parse_binding


class ProfileConfig(BaseModel):
    """Cloudflare account credentials."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="accountId", description="Cloudflare account id")
    api_token: str = Field(..., alias="apiToken", description="Cloudflare API token")
    default: bool = Field(False, description="Use this profile when none is named")


class ScriptConfig(BaseModel):
    """A named worker script."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(..., description="Local path or https url of the worker entry point")
    bindings: Dict[str, Binding] = Field(default_factory=dict)
    usage_model: Optional[Literal["bundled", "unbound"]] = Field(None, alias="usageModel")
    logpush: Optional[bool] = None
    compatibility_date: Optional[str] = Field(None, alias="compatibilityDate")
    compatibility_flags: Optional[List[str]] = Field(None, alias="compatibilityFlags")
    custom_domains: Optional[List[str]] = Field(None, alias="customDomains")
    workers_dev: Optional[bool] = Field(None, alias="workersDev")
    profile: Optional[str] = Field(None, description="Name of the profile to push with")
    deploy: Optional[str] = Field(None, description="Deno Deploy options, e.g. access-token=ddp_...")

    @field_validator("bindings", mode="before")
    @classmethod
    def parse_bindings(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("bindings must be an object")
        return {name: parse_binding(name, value) for name, value in v.items()}

    @field_validator("compatibility_date")
    @classmethod
    def validate_compatibility_date(cls, v):
        if v is not None and not re.match(r"^\d{4}-\d{2}-\d{2}$", v):
            raise ValueError(f"compatibilityDate must be YYYY-MM-DD: {v}")
        return v

    def deploy_options(self) -> Dict[str, str]:
        """Parse the compact ``deploy`` string into a dict of options."""
        options: Dict[str, str] = {}
        if not self.deploy:
            return options
        for token in self.deploy.strip().split(","):
            m = re.match(r"^([a-z-]+)=(.+?)$", token.strip())
            if not m:
                raise ConfigError(f"Invalid deploy config: {self.deploy}")
            options[m.group(1)] = m.group(2)
        return options


class EdgeConfig(BaseModel):
    """Main configuration schema."""

    scripts: Dict[str, ScriptConfig] = Field(default_factory=dict)
    profiles: Dict[str, ProfileConfig] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EdgeConfig":
        """Create a configuration from a dictionary."""
        return cls.model_validate(data or {})
