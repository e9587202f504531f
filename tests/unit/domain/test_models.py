from __future__ import annotations

"""
Unit tests for Domain Models.

Verifies the tree node invariants, the chunk set accessors, manifest
parsing and the pipeline result factories.
"""

from pathlib import Path

import pytest

from blitzpack.domain.errors import UnsupportedEntryKind
from blitzpack.domain.snapshot_models import (
    ChunkSet,
    SnapshotManifest,
    chunk_name,
    create_error_result,
    create_success_result,
)
from blitzpack.domain.tree_models import DirNode, FileNode, TreeModel


def test_dir_node_rejects_duplicate_names() -> None:
    folder = DirNode()
    folder.attach("x", FileNode("/tmp/x"))
    with pytest.raises(ValueError):
        folder.attach("x", DirNode())


def test_tree_count_excludes_root() -> None:
    sub = DirNode()
    sub.attach("f", FileNode("/f"))
    root = DirNode()
    root.attach("sub", sub)
    root.attach("g", FileNode("/g"))

    assert TreeModel(root=root).count() == (1, 2)


def test_file_node_reads_bytes(tmp_path: Path) -> None:
    f = tmp_path / "data"
    f.write_bytes(b"\x00\x01")
    assert FileNode(str(f)).read_content() == b"\x00\x01"


def test_chunk_set_accessors() -> None:
    chunks = ChunkSet(base_path="/out/snapshot.bin", chunk_size=10, sizes=[10, 10, 8])
    assert chunks.count == 3
    assert chunks.total_size == 28
    assert chunks.paths[-1] == "/out/snapshot.bin.2"
    assert chunk_name("/out/snapshot.bin", 4) == "snapshot.bin.4"


def test_manifest_round_trips_through_dict() -> None:
    manifest = SnapshotManifest(
        artifact="snapshot.bin", chunk_count=5, chunk_size=10,
        total_size=48, sha256="ab" * 32, created_at="2026-01-01T00:00:00+00:00",
    )
    assert SnapshotManifest.from_dict(manifest.to_dict()) == manifest


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"artifact": "snapshot.bin"},
        {"artifact": "a", "chunk_count": "x", "chunk_size": 1, "total_size": 1, "sha256": ""},
        {"artifact": "a", "chunk_count": 1, "chunk_size": 1, "total_size": 1, "sha256": "", "format": "zip"},
        {"artifact": "a", "chunk_count": -1, "chunk_size": 1, "total_size": 1, "sha256": ""},
    ],
)
def test_manifest_rejects_invalid_payloads(data) -> None:
    with pytest.raises(ValueError):
        SnapshotManifest.from_dict(data)


def test_result_factories(build_config) -> None:
    chunks = ChunkSet(base_path="/out/snapshot.bin", chunk_size=10, sizes=[10, 2])

    ok = create_success_result(build_config, "/in", "/out", chunks, 1, 2, manifest_path="/out/snapshot.bin.json")
    assert ok.ok is True
    assert ok.chunk_count == 2
    assert ok.total_size == 12
    assert ok.chunk_paths == ["/out/snapshot.bin.0", "/out/snapshot.bin.1"]

    failed = create_error_result("boom", build_config, "/in")
    assert failed.ok is False
    assert failed.error == "boom"
    assert failed.chunk_count == 0


def test_unsupported_entry_message_names_path_and_kind() -> None:
    err = UnsupportedEntryKind("/app/pipe", "FIFO")
    assert "/app/pipe" in str(err)
    assert "FIFO" in str(err)
