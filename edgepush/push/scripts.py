"""Resolving a script reference (config name, local file or https url)."""

import os
import posixpath
import re
from typing import NamedTuple, Optional
from urllib.parse import urlparse

from ..config.schema import EdgeConfig, ScriptConfig
from ..errors import BadScriptNameError, BadScriptSpecError

SCRIPT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,62}$")


class ScriptReference(NamedTuple):
    script_name: str
    root_specifier: str
    script: Optional[ScriptConfig] = None

    @property
    def is_module(self) -> bool:
        return not self.root_specifier.endswith(".js")


def is_valid_script_name(script_name: str) -> bool:
    return bool(script_name) and SCRIPT_NAME_PATTERN.match(script_name) is not None


def _basename_sans_extension(path: str) -> str:
    base = posixpath.basename(path)
    return base.rsplit(".", 1)[0] if "." in base else base


def resolve_script_reference(script_spec: str, config: EdgeConfig, name: Optional[str] = None) -> ScriptReference:
    """Turn a script spec into a validated script name and root specifier."""
    script = config.scripts.get(script_spec)
    if script is not None:
        ref = ScriptReference(name if name is not None else script_spec, script.path, script)
    elif script_spec.startswith("https://"):
        url_path = urlparse(script_spec).path
        if not url_path.endswith(".ts"):
            raise BadScriptSpecError(f"Url-based module workers must end in .ts: {script_spec}")
        ref = ScriptReference(name if name is not None else _basename_sans_extension(url_path), script_spec)
    elif script_spec.endswith((".js", ".ts", ".mjs", ".tsx", ".jsx")):
        if not os.path.isfile(script_spec):
            raise BadScriptSpecError(f"Script file not found: {script_spec}")
        ref = ScriptReference(
            name if name is not None else _basename_sans_extension(script_spec.replace(os.sep, "/")),
            script_spec,
        )
    else:
        raise BadScriptSpecError(
            f"Bad scriptSpec: {script_spec}, expected a script name from config, "
            "a local .js/.ts file, or an https url to a .ts module"
        )

    if not is_valid_script_name(ref.script_name):
        raise BadScriptNameError(ref.script_name)
    return ref


def watch_target(ref: ScriptReference) -> str:
    """Path or url the watch loop should observe for the root module."""
    if ref.root_specifier.startswith("https://"):
        if not urlparse(ref.root_specifier).path.endswith(".ts"):
            raise BadScriptSpecError("Url-based module workers must end in .ts")
        return ref.root_specifier
    return os.path.abspath(ref.root_specifier)
