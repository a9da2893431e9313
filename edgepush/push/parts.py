"""Parts and file entries accumulated while building a push."""

from collections import OrderedDict
from typing import Dict, Iterator, List, NamedTuple

from ..cloudflare.api import Part
from ..errors import DuplicatePartError, PartMissingBytesError
from ..utils.bytes import format_size, git_sha1_hex, gzip_size


class PartsMap:
    """Ordered parts keyed by name.

    Binding resolution and import rewriting share one instance per push.
    Re-adding an identical part is a no-op; a different part under an
    existing name is rejected.
    """

    def __init__(self):
        self._parts: "OrderedDict[str, Part]" = OrderedDict()

    def add(self, part: Part) -> None:
        existing = self._parts.get(part.name)
        if existing is not None:
            if existing == part:
                return
            raise DuplicatePartError(f"Duplicate part name: {part.name}")
        self._parts[part.name] = part

    def __contains__(self, name: str) -> bool:
        return name in self._parts

    def __getitem__(self, name: str) -> Part:
        return self._parts[name]

    def __iter__(self) -> Iterator[Part]:
        return iter(self._parts.values())

    def __len__(self) -> int:
        return len(self._parts)

    def names(self) -> List[str]:
        return list(self._parts)

    def values(self) -> List[Part]:
        return list(self._parts.values())


class FileEntry(NamedTuple):
    """A file uploaded to Deno Deploy, addressed by its git blob hash."""
    size: int
    bytes: bytes
    git_sha1: str

    @classmethod
    def of(cls, data: bytes) -> "FileEntry":
        return cls(size=len(data), bytes=data, git_sha1=git_sha1_hex(data))


class SizeReport(NamedTuple):
    uncompressed: int
    compressed: int

    def __str__(self) -> str:
        return f"({format_size(self.uncompressed)}) ({format_size(self.compressed)} compressed)"


def compute_size_report(script_contents: bytes, parts: List[Part]) -> SizeReport:
    """Total raw and gzipped sizes of the script plus all parts."""
    uncompressed = len(script_contents)
    compressed = gzip_size(script_contents)
    for part in parts:
        if part.value_bytes is None:
            raise PartMissingBytesError(f"Unable to compute size for part: {part.name}")
        uncompressed += len(part.value_bytes)
        compressed += gzip_size(part.value_bytes)
    return SizeReport(uncompressed, compressed)


def build_manifest(files: Dict[str, FileEntry]) -> Dict[str, Dict[str, Dict[str, object]]]:
    """Manifest sent to Deno Deploy for asset negotiation."""
    return {
        "entries": {
            path: {"kind": "file", "size": entry.size, "gitSha1": entry.git_sha1}
            for path, entry in files.items()
        }
    }
