"""Push edge worker scripts to Cloudflare Workers and Deno Deploy."""

__version__ = "0.1.0"

from .cli import cli  # noqa: E402
from .config import EdgeConfig, load_config  # noqa: E402
from .errors import EdgePushError  # noqa: E402
from .push import PushDeployOptions, PushOptions, push, push_deploy  # noqa: E402

__all__ = [
    "cli",
    "EdgeConfig",
    "EdgePushError",
    "PushDeployOptions",
    "PushOptions",
    "load_config",
    "push",
    "push_deploy",
]
