from __future__ import annotations

"""
Error Hierarchy.

Every failure raised by the build side or the client loader derives from
``BlitzpackError`` so interface layers can trap the whole family at once.
"""

from typing import Optional


class BlitzpackError(Exception):
    """Base class for all application errors."""


# -----------------------------------------------------------------------------
# BUILD SIDE (WALK / ENCODE / SPLIT)
# -----------------------------------------------------------------------------

class SnapshotError(BlitzpackError):
    """Base class for failures while producing or reading a snapshot."""


class UnsupportedEntryKind(SnapshotError):
    """
    A filesystem entry is not a regular file or a directory.

    Attributes:
        path: Offending filesystem path.
        kind: Human readable kind (e.g. 'FIFO', 'socket').
    """

    def __init__(self, path: str, kind: str):
        self.path = path
        self.kind = kind
        super().__init__(f"Cannot serialize unsupported file type at '{path}': '{kind}'")


class TreeDepthExceeded(SnapshotError):
    """
    A directory is nested deeper than a snapshot can represent.

    Attributes:
        path: First directory beyond the limit.
        limit: Maximum number of nested directories below the root.
    """

    def __init__(self, path: str, limit: int):
        self.path = path
        self.limit = limit
        super().__init__(f"Directory nested deeper than {limit} levels: '{path}'")


class SnapshotIOError(SnapshotError):
    """
    Storage failure during a build phase.

    Attributes:
        phase: One of 'walk', 'encode', 'split', 'manifest'.
        path: Path that triggered the failure.
    """

    def __init__(self, phase: str, path: str, reason: str):
        self.phase = phase
        self.path = path
        super().__init__(f"I/O failure during {phase} at '{path}': {reason}")


class SnapshotFormatError(SnapshotError):
    """The byte stream is not a valid snapshot."""


# -----------------------------------------------------------------------------
# CLIENT SIDE (FETCH / MOUNT / SPAWN)
# -----------------------------------------------------------------------------

class LoaderError(BlitzpackError):
    """Base class for client loader failures."""


class TransportFailure(LoaderError):
    """
    A chunk could not be fetched, arrived truncated, or failed verification.

    Attributes:
        index: Chunk index, or None when the failure concerns the whole buffer.
        url: Requested URL, when known.
    """

    def __init__(self, message: str, index: Optional[int] = None, url: str = ""):
        self.index = index
        self.url = url
        super().__init__(message)


class MountFailure(LoaderError):
    """The sandboxed runtime rejected the mount."""


class SpawnFailure(LoaderError):
    """The sandboxed runtime could not start the entry process."""
