from __future__ import annotations

"""
Concurrent Tree Walker.

Traverses a directory tree with a bounded thread pool. Every in-flight
operation (a directory listing or an lstat) is tagged with a monotonically
increasing id and the continuation context needed to place its result. The
driver loop waits for whichever operation completes first, dispatches on
its kind, and schedules follow-up operations until nothing is in flight.

Completion order is unspecified; only the final tree shape matters, since
each operation populates a distinct slot of a distinct DirNode.
"""

import itertools
import logging
import os
import stat
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from blitzpack.domain.constants import (
    DEFAULT_MAX_WORKERS,
    MAX_TREE_DEPTH,
    SYMLINK_ERROR,
    SYMLINK_POLICIES,
    SYMLINK_SKIP,
)
from blitzpack.domain.errors import (
    SnapshotIOError,
    TreeDepthExceeded,
    UnsupportedEntryKind,
)
from blitzpack.domain.tree_models import DirNode, FileNode, TreeModel

logger = logging.getLogger(__name__)

READDIR = "readdir"
STAT = "stat"


@dataclass(frozen=True)
class _Task:
    """Continuation context of one in-flight operation."""
    id: int
    kind: str
    path: str
    folder: DirNode
    name: str = ""
    depth: int = 0


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def walk_tree(
        root_path: str,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        symlink_policy: str = SYMLINK_SKIP,
        exclude: Optional[Callable[[str], bool]] = None,
        max_depth: int = MAX_TREE_DEPTH,
) -> TreeModel:
    """
    Build the in-memory tree model of a directory.

    Args:
        root_path: Directory to walk.
        max_workers: Upper bound of concurrent readdir/lstat calls.
        symlink_policy: 'skip' to omit symbolic links, 'error' to reject them.
        exclude: Optional predicate on absolute paths; matching entries are
                 left out of the tree.
        max_depth: Maximum number of nested directories below the root.

    Returns:
        TreeModel: The complete tree. No partial tree is ever returned.

    Raises:
        UnsupportedEntryKind: On sockets, FIFOs, devices (and symlinks under
                              the 'error' policy) and names that are not
                              valid UTF-8.
        TreeDepthExceeded: If directories nest deeper than ``max_depth``.
        SnapshotIOError: On any listing or stat failure.
    """
    if symlink_policy not in SYMLINK_POLICIES:
        raise ValueError(f"Unknown symlink policy: {symlink_policy!r}")
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    if not 0 <= max_depth <= MAX_TREE_DEPTH:
        raise ValueError(f"max_depth must be between 0 and {MAX_TREE_DEPTH}")

    root_abs = os.path.abspath(root_path)
    if not os.path.isdir(root_abs):
        raise SnapshotIOError("walk", root_abs, "not a directory")

    logger.info(f"Walking directory tree: {root_abs}")
    tree = TreeModel(root=DirNode(), root_path=root_abs)
    next_id = itertools.count()
    pending: Dict[Future[Any], _Task] = {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="TreeWalker") as executor:

        def schedule(kind: str, path: str, folder: DirNode, name: str = "", depth: int = 0) -> None:
            task = _Task(id=next(next_id), kind=kind, path=path, folder=folder, name=name, depth=depth)
            fn = os.listdir if kind == READDIR else os.lstat
            pending[executor.submit(fn, path)] = task

        schedule(READDIR, root_abs, tree.root)

        try:
            while pending:
                done, _ = wait(list(pending), return_when=FIRST_COMPLETED)
                for future in done:
                    task = pending.pop(future)
                    try:
                        result = future.result()
                    except OSError as e:
                        raise SnapshotIOError("walk", task.path, str(e)) from e

                    if task.kind == READDIR:
                        for name in result:
                            location = os.path.join(task.path, name)
                            if exclude is not None and exclude(location):
                                logger.debug(f"Excluded from snapshot: {location}")
                                continue
                            _check_name(name, location)
                            schedule(STAT, location, task.folder, name, task.depth)
                    else:
                        _classify(task, result, symlink_policy, max_depth, schedule)
        except BaseException:
            for future in pending:
                future.cancel()
            raise

    dirs, files = tree.count()
    logger.info(f"Walk completed: {dirs} directories, {files} files.")
    return tree


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _classify(
        task: _Task,
        st: os.stat_result,
        symlink_policy: str,
        max_depth: int,
        schedule: Callable[..., None],
) -> None:
    """Attach the node for a completed lstat, or reject the entry."""
    mode = st.st_mode

    if stat.S_ISDIR(mode):
        depth = task.depth + 1
        if depth > max_depth:
            raise TreeDepthExceeded(task.path, max_depth)
        folder = DirNode()
        task.folder.attach(task.name, folder)
        schedule(READDIR, task.path, folder, depth=depth)
    elif stat.S_ISREG(mode):
        task.folder.attach(task.name, FileNode(path=task.path))
    elif stat.S_ISLNK(mode):
        if symlink_policy == SYMLINK_ERROR:
            raise UnsupportedEntryKind(task.path, "symbolic link")
        logger.warning(f"skip symlink {task.path}")
    else:
        raise UnsupportedEntryKind(task.path, describe_kind(mode))


def _check_name(name: str, location: str) -> None:
    """Entry names are stored as UTF-8 strings; undecodable names are rejected."""
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        printable = os.fsencode(location).decode("utf-8", "backslashreplace")
        raise UnsupportedEntryKind(printable, "non UTF-8 name") from None


def describe_kind(mode: int) -> str:
    """Name the file kind of an unsupported entry."""
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISFIFO(mode):
        return "FIFO"
    if stat.S_ISBLK(mode):
        return "block device"
    if stat.S_ISCHR(mode):
        return "character device"
    return "unknown"
