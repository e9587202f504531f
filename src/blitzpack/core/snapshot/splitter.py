from __future__ import annotations

"""
Chunk Splitter.

Slices an encoded artifact into '<artifact>.<index>' files of at most
``chunk_size`` bytes, reading through a buffer of exactly one chunk.
The original artifact is removed once every chunk is written.
"""

import logging
import os
from typing import List

from blitzpack.domain.errors import SnapshotIOError
from blitzpack.domain.snapshot_models import ChunkSet, chunk_path

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def split_artifact(artifact_path: str, chunk_size: int) -> ChunkSet:
    """
    Split an artifact into sequential chunk files and delete the original.

    Concatenating the chunks in ascending index order reproduces the
    artifact. Every chunk but the last is exactly ``chunk_size`` bytes; a
    zero-length artifact yields no chunks.

    Args:
        artifact_path: Encoded artifact on disk.
        chunk_size: Maximum chunk size in bytes.

    Returns:
        ChunkSet: The written chunks. ``count`` is the chunk count.

    Raises:
        ValueError: If ``chunk_size`` is not a positive integer.
        SnapshotIOError: On any read/write failure. Chunks already written
                         are left in place.
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")

    sizes: List[int] = []
    current = artifact_path
    try:
        with open(artifact_path, "rb") as src:
            buffer = bytearray(chunk_size)
            view = memoryview(buffer)
            while True:
                filled = _fill(src, view)
                if filled == 0:
                    break
                current = chunk_path(artifact_path, len(sizes))
                with open(current, "wb") as out:
                    out.write(view[:filled])
                sizes.append(filled)
                if filled < chunk_size:
                    break
        current = artifact_path
        os.remove(artifact_path)
    except OSError as e:
        raise SnapshotIOError("split", current, str(e)) from e

    chunks = ChunkSet(base_path=artifact_path, chunk_size=chunk_size, sizes=sizes)
    logger.info(
        f"Split {chunks.total_size} bytes into {chunks.count} chunk(s) of at most {chunk_size} bytes."
    )
    return chunks


def join_chunks(base_path: str, count: int) -> bytes:
    """
    Concatenate chunk files in index order.

    Raises:
        SnapshotIOError: If a chunk is missing or unreadable.
    """
    parts: List[bytes] = []
    for index in range(count):
        path = chunk_path(base_path, index)
        try:
            with open(path, "rb") as f:
                parts.append(f.read())
        except OSError as e:
            raise SnapshotIOError("split", path, str(e)) from e
    return b"".join(parts)


def count_chunks(base_path: str) -> int:
    """Count consecutive chunk files starting at index 0."""
    count = 0
    while os.path.isfile(chunk_path(base_path, count)):
        count += 1
    return count


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _fill(src, view: memoryview) -> int:
    """Read until the buffer is full or the stream ends."""
    filled = 0
    while filled < len(view):
        n = src.readinto(view[filled:])
        if not n:
            break
        filled += n
    return filled
