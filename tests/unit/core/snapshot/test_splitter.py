from __future__ import annotations

"""
Unit tests for the Chunk Splitter.

Verifies chunk counts (ceil(N / C)), exact sizes, byte-exact reassembly,
removal of the original artifact, and the zero-length boundary case.
"""

import math
import os
from pathlib import Path

import pytest

from blitzpack.core.snapshot.splitter import count_chunks, join_chunks, split_artifact
from blitzpack.domain.errors import SnapshotIOError


def _artifact(tmp_path: Path, size: int) -> Path:
    path = tmp_path / "snapshot.bin"
    path.write_bytes(os.urandom(size))
    return path


@pytest.mark.parametrize(
    "size, chunk_size",
    [
        (48, 10),
        (50, 10),
        (1, 10),
        (10, 10),
        (11, 10),
        (4096, 1000),
        (3, 1),
    ],
)
def test_split_produces_ceil_chunks_that_rejoin_exactly(
        tmp_path: Path, size: int, chunk_size: int
) -> None:
    path = _artifact(tmp_path, size)
    original = path.read_bytes()

    chunks = split_artifact(str(path), chunk_size)

    assert chunks.count == math.ceil(size / chunk_size)
    assert all(s == chunk_size for s in chunks.sizes[:-1])
    assert 0 < chunks.sizes[-1] <= chunk_size
    assert chunks.total_size == size
    assert join_chunks(str(path), chunks.count) == original


def test_chunk_files_are_named_by_zero_based_index(tmp_path: Path) -> None:
    path = _artifact(tmp_path, 25)

    chunks = split_artifact(str(path), 10)

    assert chunks.paths == [f"{path}.0", f"{path}.1", f"{path}.2"]
    assert [Path(p).stat().st_size for p in chunks.paths] == [10, 10, 5]


def test_original_artifact_is_removed(tmp_path: Path) -> None:
    path = _artifact(tmp_path, 30)
    split_artifact(str(path), 7)
    assert not path.exists()


def test_chunk_size_larger_than_artifact_yields_single_chunk(tmp_path: Path) -> None:
    path = _artifact(tmp_path, 48)
    original = path.read_bytes()

    chunks = split_artifact(str(path), 4 * 1024 * 1024)

    assert chunks.count == 1
    assert Path(chunks.paths[0]).read_bytes() == original


def test_zero_length_artifact_yields_no_chunks(tmp_path: Path) -> None:
    path = _artifact(tmp_path, 0)

    chunks = split_artifact(str(path), 10)

    assert chunks.count == 0
    assert chunks.total_size == 0
    assert not path.exists()
    assert count_chunks(str(path)) == 0


@pytest.mark.parametrize("bad", [0, -1, 2.5, True, "10"])
def test_invalid_chunk_size_is_rejected(tmp_path: Path, bad) -> None:
    path = _artifact(tmp_path, 5)
    with pytest.raises(ValueError):
        split_artifact(str(path), bad)
    assert path.exists()


def test_missing_artifact_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(SnapshotIOError) as exc_info:
        split_artifact(str(tmp_path / "absent.bin"), 10)
    assert exc_info.value.phase == "split"


def test_count_chunks_stops_at_first_gap(tmp_path: Path) -> None:
    base = tmp_path / "snapshot.bin"
    for i in (0, 1, 3):
        Path(f"{base}.{i}").write_bytes(b"x")
    assert count_chunks(str(base)) == 2


def test_join_chunks_reports_missing_chunk(tmp_path: Path) -> None:
    base = tmp_path / "snapshot.bin"
    Path(f"{base}.0").write_bytes(b"x")
    with pytest.raises(SnapshotIOError):
        join_chunks(str(base), 2)
