from __future__ import annotations

"""
Directory Tree Structure Data Models.

Provides the tagged node variants produced by the walker and consumed by the
encoder. File nodes only carry a path reference; content is read on demand
through an explicit accessor so that the walk never buffers file bytes.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple, Union

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FileNode:
    """
    Represents a leaf entry (file) in the directory tree.

    Attributes:
        path: Absolute filesystem path to the file.
    """
    path: str

    def read_content(self) -> bytes:
        """Read the file bytes from disk. Raises OSError on failure."""
        with open(self.path, "rb") as f:
            return f.read()


@dataclass
class DirNode:
    """
    Represents a directory. Entry names are unique within a directory.

    Attributes:
        entries: Mapping from entry name to child node.
    """
    entries: Dict[str, "Node"] = field(default_factory=dict)

    def attach(self, name: str, node: "Node") -> None:
        """Attach a child node; a name may denote exactly one node."""
        if name in self.entries:
            raise ValueError(f"Duplicate entry name in directory: {name!r}")
        self.entries[name] = node

    def sorted_entries(self) -> Iterator[Tuple[str, "Node"]]:
        """Yield entries ordered by name."""
        for name in sorted(self.entries):
            yield name, self.entries[name]


Node = Union[DirNode, FileNode]


@dataclass
class TreeModel:
    """
    A snapshot tree: a single unnamed root directory.

    Attributes:
        root: Root directory node.
        root_path: Absolute path the tree was walked from.
    """
    root: DirNode
    root_path: str = ""

    def count(self) -> Tuple[int, int]:
        """Return (directories, files) below the root, the root excluded."""
        dirs = 0
        files = 0
        stack = [self.root]
        while stack:
            current = stack.pop()
            for node in current.entries.values():
                if isinstance(node, DirNode):
                    dirs += 1
                    stack.append(node)
                else:
                    files += 1
        return dirs, files
