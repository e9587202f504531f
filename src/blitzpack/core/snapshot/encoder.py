from __future__ import annotations

"""
Snapshot Encoder.

Serializes a TreeModel into a MessagePack stream of the shape

    {"d": {name: {"d": {...}} | {"f": {"c": <bin>}}, ...}}

Map headers and per-file framing are written incrementally through a
``msgpack.Packer``, so only one file's bytes are held in memory at a time.
Files are read when the encoder reaches them, never during the walk.
Entries are emitted sorted by name, which makes the output byte-identical
across runs over an unchanged tree.
"""

import logging
from typing import BinaryIO, Iterator, List, Tuple

import msgpack

from blitzpack.domain.constants import CONTENTS_KEY, DIRECTORY_KEY, FILE_KEY
from blitzpack.domain.errors import SnapshotIOError
from blitzpack.domain.tree_models import DirNode, FileNode, Node, TreeModel
from blitzpack.infra.fs import remove_quietly

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def encode_tree(tree: TreeModel, stream: BinaryIO) -> int:
    """
    Stream the encoded tree into a binary writable.

    The traversal keeps an explicit stack of directory iterators instead of
    recursing. Nesting is still capped by the walker at ``MAX_TREE_DEPTH``
    directories, well within the nesting msgpack decoders accept.

    Args:
        tree: Tree model produced by the walker.
        stream: Binary output stream.

    Returns:
        int: Number of bytes written.

    Raises:
        SnapshotIOError: If a file vanished or became unreadable since the walk.
    """
    packer = msgpack.Packer(use_bin_type=True)
    written = 0

    def emit(data: bytes) -> None:
        nonlocal written
        stream.write(data)
        written += len(data)

    emit(packer.pack_map_header(1))
    emit(packer.pack(DIRECTORY_KEY))
    emit(packer.pack_map_header(len(tree.root.entries)))

    stack: List[Iterator[Tuple[str, Node]]] = [tree.root.sorted_entries()]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue

        name, node = entry
        emit(packer.pack(name))
        emit(packer.pack_map_header(1))

        if isinstance(node, DirNode):
            emit(packer.pack(DIRECTORY_KEY))
            emit(packer.pack_map_header(len(node.entries)))
            stack.append(node.sorted_entries())
        else:
            content = _read(node)
            emit(packer.pack(FILE_KEY))
            emit(packer.pack_map_header(1))
            emit(packer.pack(CONTENTS_KEY))
            emit(packer.pack(content))

    return written


def write_snapshot(tree: TreeModel, output_path: str) -> int:
    """
    Encode the tree into a file.

    A failed encode removes the partial file before the error propagates.

    Args:
        tree: Tree model produced by the walker.
        output_path: Destination artifact path.

    Returns:
        int: Size of the artifact in bytes.
    """
    logger.info(f"Encoding snapshot: {output_path}")
    try:
        with open(output_path, "wb") as out:
            size = encode_tree(tree, out)
    except OSError as e:
        remove_quietly(output_path)
        raise SnapshotIOError("encode", output_path, str(e)) from e
    except BaseException:
        remove_quietly(output_path)
        raise

    logger.info(f"Snapshot encoded: {size} bytes.")
    return size


def encoded_size(tree: TreeModel) -> int:
    """Compute the artifact size without keeping the bytes (reads every file)."""
    sink = _CountingSink()
    return encode_tree(tree, sink)  # type: ignore[arg-type]


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _read(node: FileNode) -> bytes:
    """Resolve a file reference, mapping storage errors to the encode phase."""
    try:
        return node.read_content()
    except OSError as e:
        raise SnapshotIOError("encode", node.path, str(e)) from e


class _CountingSink:
    """Write-only sink that only measures."""

    def __init__(self) -> None:
        self.size = 0

    def write(self, data: bytes) -> int:
        self.size += len(data)
        return len(data)
