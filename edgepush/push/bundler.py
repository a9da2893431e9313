"""Bundles a module worker entry point into a single script via an external bundler."""

import shutil
import subprocess
from typing import Dict, List, NamedTuple, Optional, Sequence

from ..errors import BundleError
from ..utils.security import get_secure_logger

logger = get_secure_logger(__name__)

BACKENDS = ("esbuild", "deno")


class BundleOptions(NamedTuple):
    backend: Optional[str] = None
    minify: bool = False


class BundleOutput(NamedTuple):
    code: str
    backend: str


def parse_bundle_opts(values: Optional[Sequence[str]]) -> BundleOptions:
    """Parse repeatable ``--bundle key=value`` options."""
    opts: Dict[str, str] = {}
    for value in values or ():
        if "=" not in value:
            raise BundleError(f"Bad --bundle option, expected key=value: {value}")
        key, val = value.split("=", 1)
        opts[key.strip()] = val.strip()
    unknown = set(opts) - {"backend", "minify"}
    if unknown:
        raise BundleError(f"Unknown --bundle option(s): {', '.join(sorted(unknown))}")
    backend = opts.get("backend")
    if backend is not None and backend not in BACKENDS:
        raise BundleError(f"Unknown bundle backend: {backend}, expected one of {', '.join(BACKENDS)}")
    return BundleOptions(backend=backend, minify=opts.get("minify", "false").lower() == "true")


def _choose_backend(opts: BundleOptions) -> str:
    if opts.backend:
        return opts.backend
    for backend in BACKENDS:
        if shutil.which(backend):
            return backend
    raise BundleError("No bundler found, install deno or esbuild")


def _command(backend: str, root_specifier: str, opts: BundleOptions) -> List[str]:
    if backend == "deno":
        cmd = ["deno", "bundle"]
        if opts.minify:
            cmd.append("--minify")
        return cmd + [root_specifier]
    cmd = ["esbuild", root_specifier, "--bundle", "--format=esm", "--platform=neutral"]
    if opts.minify:
        cmd.append("--minify")
    return cmd


def bundle(root_specifier: str, opts: Optional[BundleOptions] = None) -> BundleOutput:
    """Bundle root_specifier and return the resulting code."""
    opts = opts or BundleOptions()
    backend = _choose_backend(opts)
    cmd = _command(backend, root_specifier, opts)
    logger.debug(f"Running bundle command: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError:
        raise BundleError(f"Bundler not found: {cmd[0]}")

    if result.returncode != 0:
        raise BundleError(f"Error bundling {root_specifier} ({backend}): {result.stderr.strip()}")
    return BundleOutput(code=result.stdout, backend=backend)
