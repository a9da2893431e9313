"""Push pipeline: bundle, rewrite, resolve bindings, reconcile and upload."""

from .deploy import DeployPusher, PushDeployOptions, push_deploy
from .workers import PushOptions, WorkersPusher, compute_migrations, push

__all__ = [
    "DeployPusher",
    "PushDeployOptions",
    "PushOptions",
    "WorkersPusher",
    "compute_migrations",
    "push",
    "push_deploy",
]
