"""Binding definitions as they appear in config files and on the command line.

A binding is identified by the single key that carries its value, e.g.
``{"kvNamespace": "<id>"}`` or ``{"doNamespace": "counter:Counter"}``.
"""

import re
from typing import Any, Callable, ClassVar, Dict, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import UnsupportedBindingError


class _BindingModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    kind: ClassVar[str]
    key: ClassVar[str]

    def map_values(self, fn: Callable[[str], str]) -> "_BindingModel":
        """Return a copy with fn applied to every string value."""
        update = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, str):
                update[field_name] = fn(value)
        return self.model_copy(update=update)


class TextBinding(_BindingModel):
    kind: ClassVar[str] = "plain_text"
    key: ClassVar[str] = "value"

    value: str


class SecretBinding(_BindingModel):
    kind: ClassVar[str] = "secret_text"
    key: ClassVar[str] = "secret"

    secret: str


class KVNamespaceBinding(_BindingModel):
    kind: ClassVar[str] = "kv_namespace"
    key: ClassVar[str] = "kvNamespace"

    kv_namespace: str = Field(..., alias="kvNamespace")


class DONamespaceBinding(_BindingModel):
    kind: ClassVar[str] = "durable_object_namespace"
    key: ClassVar[str] = "doNamespace"

    do_namespace: str = Field(..., alias="doNamespace", description="name:ClassName")


class WasmModuleBinding(_BindingModel):
    kind: ClassVar[str] = "wasm_module"
    key: ClassVar[str] = "wasmModule"

    wasm_module: str = Field(..., alias="wasmModule", description="Local path to a .wasm file")


class ServiceBinding(_BindingModel):
    kind: ClassVar[str] = "service"
    key: ClassVar[str] = "serviceEnvironment"

    service_environment: str = Field(..., alias="serviceEnvironment", description="service:environment")


class R2BucketBinding(_BindingModel):
    kind: ClassVar[str] = "r2_bucket"
    key: ClassVar[str] = "bucketName"

    bucket_name: str = Field(..., alias="bucketName")


class AnalyticsEngineBinding(_BindingModel):
    kind: ClassVar[str] = "analytics_engine"
    key: ClassVar[str] = "dataset"

    dataset: str


class D1DatabaseBinding(_BindingModel):
    kind: ClassVar[str] = "d1"
    key: ClassVar[str] = "d1DatabaseUuid"

    d1_database_uuid: str = Field(..., alias="d1DatabaseUuid")


class QueueBinding(_BindingModel):
    kind: ClassVar[str] = "queue"
    key: ClassVar[str] = "queueName"

    queue_name: str = Field(..., alias="queueName")


class SecretKeyBinding(_BindingModel):
    kind: ClassVar[str] = "secret_key"
    key: ClassVar[str] = "secretKey"

    secret_key: str = Field(..., alias="secretKey", description="JSON crypto key descriptor")


class BrowserBinding(_BindingModel):
    kind: ClassVar[str] = "browser"
    key: ClassVar[str] = "browser"

    browser: Dict[str, Any] = Field(default_factory=dict)


Binding = Union[
    TextBinding,
    SecretBinding,
    KVNamespaceBinding,
    DONamespaceBinding,
    WasmModuleBinding,
    ServiceBinding,
    R2BucketBinding,
    AnalyticsEngineBinding,
    D1DatabaseBinding,
    QueueBinding,
    SecretKeyBinding,
    BrowserBinding,
]

BINDING_TYPES = {
    cls.key: cls
    for cls in (
        TextBinding,
        SecretBinding,
        KVNamespaceBinding,
        DONamespaceBinding,
        WasmModuleBinding,
        ServiceBinding,
        R2BucketBinding,
        AnalyticsEngineBinding,
        D1DatabaseBinding,
        QueueBinding,
        SecretKeyBinding,
        BrowserBinding,
    )
}


def parse_binding(name: str, data: Any) -> Binding:
    """Classify a raw binding definition by its identifying key."""
    if isinstance(data, _BindingModel):
        return data
    if not isinstance(data, dict) or len(data) != 1:
        raise UnsupportedBindingError(f"Unsupported binding {name}: {data!r}")
    (key, _), = data.items()
    binding_type = BINDING_TYPES.get(key)
    if binding_type is None:
        raise UnsupportedBindingError(f"Unsupported binding {name}: unknown key {key!r}")
    if binding_type is not BrowserBinding and not isinstance(data[key], str):
        raise UnsupportedBindingError(f"Unsupported binding {name}: {key} must be a string")
    return binding_type.model_validate(data)


# name:value style command line options, see parse_binding_options
BINDING_OPTIONS = {
    "text_binding": "value",
    "secret_binding": "secret",
    "kv_namespace_binding": "kvNamespace",
    "do_namespace_binding": "doNamespace",
    "wasm_module_binding": "wasmModule",
    "service_binding": "serviceEnvironment",
    "r2_bucket_binding": "bucketName",
    "ae_dataset_binding": "dataset",
    "d1_database_binding": "d1DatabaseUuid",
    "queue_binding": "queueName",
    "secret_key_binding": "secretKey",
}

_OPTION_PATTERN = re.compile(r"^([^:]+):(.*)$", re.DOTALL)


def parse_binding_options(**options) -> Dict[str, Binding]:
    """Build bindings from repeatable ``--xxx-binding name:value`` options."""
    bindings: Dict[str, Binding] = {}
    for option_name, key in BINDING_OPTIONS.items():
        for raw in options.get(option_name) or ():
            m = _OPTION_PATTERN.match(raw)
            if not m:
                flag = "--" + option_name.replace("_", "-")
                raise UnsupportedBindingError(f"Bad {flag} value, expected name:value: {raw}")
            name, value = m.group(1), m.group(2)
            bindings[name] = parse_binding(name, {key: value})
    for name in options.get("browser_binding") or ():
        bindings[name] = BrowserBinding()
    return bindings
