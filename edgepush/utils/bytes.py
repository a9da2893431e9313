"""Byte-level helpers: content addressing and human-readable sizes."""

import gzip
import hashlib


def git_sha1_hex(data: bytes) -> str:
    """SHA-1 of the canonical git blob framing: b"blob <len>\\0" + data."""
    header = f"blob {len(data)}\0".encode("ascii")
    return hashlib.sha1(header + data).hexdigest()


def gzip_size(data: bytes) -> int:
    """Size of data after gzip compression; used for size reports only."""
    return len(gzip.compress(data))


def format_size(num_bytes: int) -> str:
    """Format a byte count the way the push log lines show it (e.g. 1.2kb)."""
    if num_bytes < 1024:
        return f"{num_bytes}bytes"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f}kb"
    if num_bytes < 1024 * 1024 * 1024:
        return f"{num_bytes / 1024 / 1024:.1f}mb"
    return f"{num_bytes / 1024 / 1024 / 1024:.2f}gb"
