"""Command-line interface for edgepush."""

from .commands import cli
from .commands_d1 import d1_group
from .commands_push import push_command
from .commands_push_deploy import push_deploy_command

__all__ = ["cli", "d1_group", "push_command", "push_deploy_command"]
