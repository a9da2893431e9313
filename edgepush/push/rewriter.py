"""Rewrites bundled worker source so that local asset imports become uploadable parts.

Bundled output references local assets with calls of the form::

    const data = await importBinary(importMeta.url, "./static/logo.png");

Each such line is handed to a sink together with the resolved asset bytes;
the sink decides what replaces the line.
"""

import os
import posixpath
import re
from typing import Callable, Dict, NamedTuple
from urllib.parse import urljoin, urlparse

import requests

from ..cloudflare.api import Part
from ..errors import BadScriptSpecError, RemoteCallError
from ..utils.security import get_secure_logger
from .parts import FileEntry, PartsMap

logger = get_secure_logger(__name__)

SOCKETS_SENTINEL = re.compile(r"const\s+\{\s*connect\s*\}\s*=\s*cloudflareSockets\(\);")
SOCKETS_IMPORT = 'import { connect } from "cloudflare:sockets";'

IMPORT_PATTERN = re.compile(
    r"const\s+([A-Za-z_$][\w$]*)\s*=\s*await\s+import(Text|Binary|Wasm)\(\s*"
    r"(import\.meta|importMeta\d*)\.url\s*,\s*(['\"])(\.{1,2}/[^'\"]+)\4\s*\)\s*;?"
)

CONTENT_TYPES = {
    "Text": "text/plain",
    "Binary": "application/octet-stream",
    "Wasm": "application/wasm",
}


class LocalImport(NamedTuple):
    """A recognized local asset import found in bundled source."""
    relative_path: str
    value_bytes: bytes
    content_type: str
    variable_name: str
    line: str
    import_meta_variable_name: str
    unquoted_module_specifier: str


ImportSink = Callable[[LocalImport], str]


def read_location(location: str) -> bytes:
    """Read a local path or an https url."""
    if location.startswith("https://"):
        try:
            response = requests.get(location, timeout=60)
        except requests.RequestException as e:
            raise RemoteCallError(f"GET {location} failed: {e}")
        if response.status_code >= 400:
            raise RemoteCallError(f"GET {location} failed", response.status_code)
        return response.content
    with open(location, "rb") as f:
        return f.read()


def _resolve(root_specifier: str, module_specifier: str):
    """Return (location, relative_path) for a specifier relative to the root module."""
    if root_specifier.startswith("https://"):
        location = urljoin(root_specifier, module_specifier)
        root_dir = posixpath.dirname(urlparse(root_specifier).path)
        relative_path = posixpath.relpath(urlparse(location).path, root_dir)
        return location, relative_path
    if root_specifier.startswith("http://"):
        raise BadScriptSpecError(f"Only https urls are supported: {root_specifier}")
    root_dir = os.path.dirname(os.path.abspath(root_specifier))
    location = os.path.normpath(os.path.join(root_dir, module_specifier))
    relative_path = os.path.relpath(location, root_dir).replace(os.sep, "/")
    return location, relative_path


def replace_imports(source: str, root_specifier: str, sink: ImportSink) -> str:
    """Replace every line holding a local asset import with the sink's result."""
    cache: Dict[str, bytes] = {}
    lines = source.splitlines(keepends=True)
    for i, raw_line in enumerate(lines):
        m = IMPORT_PATTERN.search(raw_line)
        if not m:
            continue
        variable_name, import_kind, import_meta, _, module_specifier = m.groups()
        line = raw_line.rstrip("\r\n")
        newline = raw_line[len(line):]
        location, relative_path = _resolve(root_specifier, module_specifier)
        if location not in cache:
            cache[location] = read_location(location)
        value_bytes = cache[location]
        logger.debug(f"Found local import {module_specifier} ({import_kind}) -> {relative_path}")
        lines[i] = sink(LocalImport(
            relative_path=relative_path,
            value_bytes=value_bytes,
            content_type=CONTENT_TYPES[import_kind],
            variable_name=variable_name,
            line=line,
            import_meta_variable_name=import_meta,
            unquoted_module_specifier=module_specifier,
        )) + newline
    return "".join(lines)


def rewrite_for_workers(source: str, root_specifier: str, parts: PartsMap) -> str:
    """Workers flavor: assets become named parts imported by relative path."""
    source = SOCKETS_SENTINEL.sub(SOCKETS_IMPORT, source, count=1)

    def sink(imp: LocalImport) -> str:
        parts.add(Part(
            name=imp.relative_path,
            value_bytes=imp.value_bytes,
            content_type=imp.content_type,
            file_name=imp.relative_path,
        ))
        return f'import {imp.variable_name} from "{imp.relative_path}";'

    return replace_imports(source, root_specifier, sink)


def rewrite_for_deploy(source: str, root_specifier: str, files: Dict[str, FileEntry]) -> str:
    """Deploy flavor: assets are stored content-addressed next to the worker."""

    def sink(imp: LocalImport) -> str:
        entry = FileEntry.of(imp.value_bytes)
        filename = f"_import_{entry.git_sha1}.dat"
        files[filename] = entry
        return imp.line.replace(imp.import_meta_variable_name, "import.meta", 1) \
            .replace(imp.unquoted_module_specifier, f"./{filename}", 1)

    return replace_imports(source, root_specifier, sink)
