"""Exceptions raised by edgepush.

Every error carries a ``kind`` that identifies the failure class in log
output and tests.
"""

from typing import Optional


class EdgePushError(Exception):
    """Base class for all edgepush errors."""
    kind = "edgepush-error"


class ConfigError(EdgePushError):
    """The configuration file could not be loaded or validated."""
    kind = "bad-config"


class BadScriptNameError(EdgePushError):
    kind = "bad-script-name"

    def __init__(self, script_name: str):
        super().__init__(f"Bad scriptName: {script_name!r}")
        self.script_name = script_name


class BadScriptSpecError(EdgePushError):
    kind = "bad-script-spec"


class MissingCredentialsError(EdgePushError):
    kind = "missing-credentials"


class BundleError(EdgePushError):
    kind = "bundle-failed"


class UnsupportedBindingError(EdgePushError):
    """A binding definition matched none of the known binding kinds."""
    kind = "unsupported-binding"


class BindingUnsupportedOnTargetError(EdgePushError):
    kind = "binding-unsupported-on-target"

    def __init__(self, name: str, binding_kind: str, target: str):
        super().__init__(f"Binding {name} ({binding_kind}) is not supported on {target}")
        self.name = name
        self.binding_kind = binding_kind
        self.target = target


class BadServiceBindingError(EdgePushError):
    kind = "bad-service-binding"


class BadDurableObjectNamespaceSpecError(EdgePushError):
    kind = "bad-do-namespace-spec"


class ZoneNotFoundError(EdgePushError):
    kind = "zone-not-found"


class ZoneAmbiguousError(EdgePushError):
    kind = "zone-ambiguous"


class ZoneNotUsableError(EdgePushError):
    kind = "zone-not-usable"


class DatabaseNotFoundError(EdgePushError):
    kind = "db-not-found"

    def __init__(self, database_name: str):
        super().__init__(f"Database not found: {database_name}")
        self.database_name = database_name


class DeployProjectNotFoundError(EdgePushError):
    kind = "deploy-project-not-found"


class DeployModuleOnlyError(EdgePushError):
    kind = "deploy-module-only"


class DeployNoDeploymentError(EdgePushError):
    kind = "deploy-no-deployment"


class PartMissingBytesError(EdgePushError):
    kind = "part-missing-bytes"


class DuplicatePartError(EdgePushError):
    kind = "duplicate-part"


class RemoteCallError(EdgePushError):
    """A remote API call failed; carries the (masked) response body."""
    kind = "remote-call-failed"

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        detail = message
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        if body:
            detail = f"{detail}: {body}"
        super().__init__(detail)
        self.status_code = status_code
        self.body = body
