"""Binding resolution for the Workers and Deploy targets."""

import json
import os
import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from ..cloudflare.api import Part
from ..config.bindings import (
    AnalyticsEngineBinding,
    Binding,
    BrowserBinding,
    D1DatabaseBinding,
    DONamespaceBinding,
    KVNamespaceBinding,
    QueueBinding,
    R2BucketBinding,
    SecretBinding,
    SecretKeyBinding,
    ServiceBinding,
    TextBinding,
    WasmModuleBinding,
)
from ..errors import (
    BadServiceBindingError,
    BindingUnsupportedOnTargetError,
    UnsupportedBindingError,
)
from ..utils.security import default_masker
from .durable_objects import DurableObjectNamespaces
from .parts import PartsMap

MACRO_PATTERN = re.compile(r"\$\{([^}]+)\}")
SERVICE_ENVIRONMENT_PATTERN = re.compile(r"^([^:]+):([^:]+)$")
CRYPTO_KEY_FORMATS = ("raw", "pkcs8", "spki", "jwk")


class CryptoKeyDef(NamedTuple):
    format: str
    algorithm: Any
    usages: List[str]
    base64: str


def parse_crypto_key_def(descriptor: str) -> CryptoKeyDef:
    """Parse a JSON secret key descriptor {format, algorithm, usages, base64}."""
    try:
        obj = json.loads(descriptor)
    except ValueError as e:
        raise UnsupportedBindingError(f"Bad secret key descriptor, expected JSON: {e}")
    if not isinstance(obj, dict):
        raise UnsupportedBindingError("Bad secret key descriptor, expected an object")
    key_format = obj.get("format")
    algorithm = obj.get("algorithm")
    usages = obj.get("usages")
    key_base64 = obj.get("base64")
    if key_format not in CRYPTO_KEY_FORMATS:
        raise UnsupportedBindingError(f"Bad secret key format: {key_format!r}")
    if not isinstance(algorithm, (str, dict)) or not algorithm:
        raise UnsupportedBindingError(f"Bad secret key algorithm: {algorithm!r}")
    if not isinstance(usages, list) or not usages or not all(isinstance(u, str) for u in usages):
        raise UnsupportedBindingError(f"Bad secret key usages: {usages!r}")
    if not isinstance(key_base64, str) or not key_base64:
        raise UnsupportedBindingError("Bad secret key material, expected base64 string")
    return CryptoKeyDef(key_format, algorithm, usages, key_base64)


def _expand_macros(value: str, push_id: Optional[str]) -> str:
    def replace(m: "re.Match[str]") -> str:
        macro = m.group(1)
        if macro == "pushId":
            if push_id is None:
                raise UnsupportedBindingError("${pushId} is only available when pushing with --watch")
            return push_id
        if macro.startswith("env:"):
            var_name = macro[len("env:"):]
            if var_name not in os.environ:
                raise UnsupportedBindingError(f"Environment variable referenced by binding not set: {var_name}")
            return os.environ[var_name]
        raise UnsupportedBindingError(f"Unknown binding macro: ${{{macro}}}")

    return MACRO_PATTERN.sub(replace, value)


def resolve_bindings(input_bindings: Dict[str, Binding], push_id: Optional[str] = None) -> Dict[str, Binding]:
    """Expand ``${pushId}`` and ``${env:NAME}`` macros in every binding value."""
    resolved = {
        name: binding.map_values(lambda v: _expand_macros(v, push_id))
        for name, binding in input_bindings.items()
    }
    default_masker.register(b.secret for b in resolved.values() if isinstance(b, SecretBinding))
    return resolved


def compute_binding(name: str, binding: Binding, do_namespaces: DurableObjectNamespaces,
                    script_name: str, parts: PartsMap) -> Dict[str, Any]:
    """Map one resolved binding to its Workers API descriptor."""
    if isinstance(binding, TextBinding):
        return {"type": "plain_text", "name": name, "text": binding.value}
    elif isinstance(binding, SecretBinding):
        return {"type": "secret_text", "name": name, "text": binding.secret}
    elif isinstance(binding, KVNamespaceBinding):
        return {"type": "kv_namespace", "name": name, "namespace_id": binding.kv_namespace}
    elif isinstance(binding, DONamespaceBinding):
        namespace_id = do_namespaces.get_or_create_namespace_id(binding.do_namespace, script_name)
        return {"type": "durable_object_namespace", "name": name, "namespace_id": namespace_id}
    elif isinstance(binding, WasmModuleBinding):
        return {"type": "wasm_module", "name": name, "part": compute_wasm_module_part(binding.wasm_module, parts, name)}
    elif isinstance(binding, ServiceBinding):
        service, environment = parse_service_environment(name, binding.service_environment)
        return {"type": "service", "name": name, "service": service, "environment": environment}
    elif isinstance(binding, R2BucketBinding):
        return {"type": "r2_bucket", "name": name, "bucket_name": binding.bucket_name}
    elif isinstance(binding, AnalyticsEngineBinding):
        return {"type": "analytics_engine", "name": name, "dataset": binding.dataset}
    elif isinstance(binding, D1DatabaseBinding):
        return {"type": "d1", "name": name, "id": binding.d1_database_uuid}
    elif isinstance(binding, QueueBinding):
        return {"type": "queue", "name": name, "queue_name": binding.queue_name}
    elif isinstance(binding, SecretKeyBinding):
        key = parse_crypto_key_def(binding.secret_key)
        return {"type": "secret_key", "name": name, "format": key.format, "algorithm": key.algorithm,
                "usages": key.usages, "key_base64": key.base64}
    elif isinstance(binding, BrowserBinding):
        return {"type": "browser", "name": name}
    raise UnsupportedBindingError(f"Unsupported binding {name}: {binding!r}")


def parse_service_environment(name: str, service_environment: str) -> Tuple[str, str]:
    m = SERVICE_ENVIRONMENT_PATTERN.match(service_environment)
    if not m:
        raise BadServiceBindingError(
            f"Bad service binding {name}: expected service:environment, found {service_environment!r}"
        )
    return m.group(1), m.group(2)


def compute_wasm_module_part(wasm_module: str, parts: PartsMap, name: str) -> str:
    with open(wasm_module, "rb") as f:
        value_bytes = f.read()
    parts.add(Part(name=name, value_bytes=value_bytes, content_type="application/wasm"))
    return name


def compute_bindings(input_bindings: Dict[str, Binding], script_name: str,
                     do_namespaces: DurableObjectNamespaces, parts: PartsMap,
                     push_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Resolve input bindings into Workers API descriptors, registering parts as needed."""
    resolved = resolve_bindings(input_bindings, push_id)
    return [
        compute_binding(name, binding, do_namespaces, script_name, parts)
        for name, binding in resolved.items()
    ]


def compute_environment_variables(input_bindings: Dict[str, Binding], push_id: Optional[str] = None) -> Dict[str, str]:
    """Deploy only supports text and secret bindings, passed as environment variables."""
    resolved = resolve_bindings(input_bindings, push_id)
    env: Dict[str, str] = {}
    for name, binding in resolved.items():
        if isinstance(binding, TextBinding):
            env[name] = binding.value
        elif isinstance(binding, SecretBinding):
            env[name] = binding.secret
        else:
            raise BindingUnsupportedOnTargetError(name, binding.kind, "Deno Deploy")
    return env
