"""Utility functions for edgepush."""

from .bytes import format_size, git_sha1_hex, gzip_size
from .environment import apply_env_file, get_env, load_env_file
from .security import get_secure_logger, mask_secrets

__all__ = [
    "format_size",
    "git_sha1_hex",
    "gzip_size",
    "apply_env_file",
    "get_env",
    "load_env_file",
    "get_secure_logger",
    "mask_secrets",
]
