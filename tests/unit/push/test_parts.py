"""Tests for part bookkeeping and size reporting."""

import pytest

from edgepush.cloudflare.api import Part
from edgepush.errors import DuplicatePartError, PartMissingBytesError
from edgepush.push.parts import FileEntry, PartsMap, build_manifest, compute_size_report


def test_parts_map_keeps_insertion_order():
    parts = PartsMap()
    parts.add(Part("b", b"2"))
    parts.add(Part("a", b"1"))
    assert parts.names() == ["b", "a"]
    assert "a" in parts
    assert [p.name for p in parts] == ["b", "a"]


def test_parts_map_identical_part_is_noop():
    parts = PartsMap()
    parts.add(Part("W", b"wasm", "application/wasm"))
    parts.add(Part("W", b"wasm", "application/wasm"))
    assert len(parts) == 1


def test_parts_map_conflicting_part_rejected():
    parts = PartsMap()
    parts.add(Part("W", b"wasm"))
    with pytest.raises(DuplicatePartError):
        parts.add(Part("W", b"other"))


def test_size_report():
    report = compute_size_report(b"x" * 100, [Part("a", b"y" * 50)])
    assert report.uncompressed == 150
    assert report.compressed > 0
    assert str(report).startswith("(150bytes) (")
    assert str(report).endswith(" compressed)")


def test_size_report_requires_bytes():
    with pytest.raises(PartMissingBytesError):
        compute_size_report(b"x", [Part("a", None)])


def test_build_manifest():
    entry = FileEntry.of(b"hello")
    manifest = build_manifest({"worker.ts": entry})
    assert manifest == {
        "entries": {"worker.ts": {"kind": "file", "size": 5, "gitSha1": entry.git_sha1}}
    }
