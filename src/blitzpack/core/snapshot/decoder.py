from __future__ import annotations

"""
Snapshot Decoder.

Parses a MessagePack snapshot back into nested dictionaries, validates its
shape, and materializes it as a real directory tree. Used by the local
sandbox runtime to mount a reassembled buffer and by the round-trip checks.
"""

import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import msgpack

from blitzpack.domain.constants import CONTENTS_KEY, DIRECTORY_KEY, FILE_KEY
from blitzpack.domain.errors import SnapshotFormatError
from blitzpack.domain.tree_models import DirNode, TreeModel

logger = logging.getLogger(__name__)

DecodedTree = Dict[str, Any]

_FORBIDDEN_NAMES = ("", ".", "..")


# -----------------------------------------------------------------------------
# DECODING
# -----------------------------------------------------------------------------

def decode_snapshot(data: Union[bytes, bytearray, memoryview]) -> DecodedTree:
    """
    Decode and validate a snapshot buffer.

    Args:
        data: The complete encoded artifact.

    Returns:
        DecodedTree: ``{"d": {...}}`` with file contents as ``bytes``.

    Raises:
        SnapshotFormatError: If the buffer is not a well-formed snapshot.
    """
    try:
        decoded = msgpack.unpackb(bytes(data), raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        raise SnapshotFormatError(f"Snapshot is not valid MessagePack: {e}") from e

    validate_snapshot(decoded)
    return decoded


def validate_snapshot(decoded: Any) -> None:
    """Check the node shapes and entry names of a decoded snapshot."""
    if not isinstance(decoded, dict) or set(decoded) != {DIRECTORY_KEY}:
        raise SnapshotFormatError("Snapshot root must be a single directory node.")

    stack: List[Tuple[str, Any]] = [("", decoded[DIRECTORY_KEY])]
    while stack:
        rel_dir, entries = stack.pop()
        if not isinstance(entries, dict):
            raise SnapshotFormatError(f"Directory '{rel_dir or '/'}' is not a map.")

        for name, node in entries.items():
            rel = f"{rel_dir}/{name}" if rel_dir else str(name)
            _check_name(name, rel)
            if not isinstance(node, dict) or len(node) != 1:
                raise SnapshotFormatError(f"Entry '{rel}' is not a tagged node.")

            if DIRECTORY_KEY in node:
                stack.append((rel, node[DIRECTORY_KEY]))
            elif FILE_KEY in node:
                file_node = node[FILE_KEY]
                if not isinstance(file_node, dict) or not isinstance(file_node.get(CONTENTS_KEY), bytes):
                    raise SnapshotFormatError(f"File '{rel}' has no binary content.")
            else:
                raise SnapshotFormatError(f"Entry '{rel}' has an unknown tag.")


def iter_entries(decoded: DecodedTree) -> Iterator[Tuple[str, Optional[bytes]]]:
    """
    Yield ``(relative_path, content)`` pairs in name order.

    Directories yield ``None`` as content and precede their children.
    """
    stack: List[Tuple[str, Dict[str, Any]]] = [("", decoded[DIRECTORY_KEY])]
    while stack:
        rel_dir, entries = stack.pop()
        subdirs: List[Tuple[str, Dict[str, Any]]] = []
        for name in sorted(entries):
            node = entries[name]
            rel = f"{rel_dir}/{name}" if rel_dir else name
            if DIRECTORY_KEY in node:
                yield rel, None
                subdirs.append((rel, node[DIRECTORY_KEY]))
            else:
                yield rel, node[FILE_KEY][CONTENTS_KEY]
        stack.extend(reversed(subdirs))


# -----------------------------------------------------------------------------
# MATERIALIZATION
# -----------------------------------------------------------------------------

def materialize_tree(decoded: DecodedTree, dest: str) -> Tuple[int, int]:
    """
    Write a decoded snapshot below ``dest``.

    Args:
        decoded: Validated snapshot from ``decode_snapshot``.
        dest: Existing or new destination directory.

    Returns:
        Tuple[int, int]: (directories, files) created.
    """
    os.makedirs(dest, exist_ok=True)
    dirs = 0
    files = 0
    for rel, content in iter_entries(decoded):
        target = os.path.join(dest, *rel.split("/"))
        if content is None:
            os.makedirs(target, exist_ok=True)
            dirs += 1
        else:
            with open(target, "wb") as f:
                f.write(content)
            files += 1
    logger.debug(f"Materialized {dirs} directories and {files} files in {dest}")
    return dirs, files


def tree_to_dict(tree: TreeModel) -> DecodedTree:
    """Read a tree model into the decoded snapshot shape (reads every file)."""

    def convert(folder: DirNode) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name, node in folder.sorted_entries():
            if isinstance(node, DirNode):
                out[name] = {DIRECTORY_KEY: convert(node)}
            else:
                out[name] = {FILE_KEY: {CONTENTS_KEY: node.read_content()}}
        return out

    return {DIRECTORY_KEY: convert(tree.root)}


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _check_name(name: Any, rel: str) -> None:
    """Reject names that would escape or alias their directory."""
    if not isinstance(name, str):
        raise SnapshotFormatError(f"Entry name under '{rel}' is not a string.")
    if name in _FORBIDDEN_NAMES or "/" in name or "\x00" in name:
        raise SnapshotFormatError(f"Illegal entry name: {rel!r}")
    if os.sep in name or (os.altsep and os.altsep in name):
        raise SnapshotFormatError(f"Illegal entry name: {rel!r}")
