from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures for sample directory trees and build configurations.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    Create the reference application tree.

    Structure:
    /app
      a.txt      -> "hello"
      /b
        c.txt    -> "world"
    """
    root = tmp_path / "app"
    root.mkdir()
    (root / "a.txt").write_bytes(b"hello")
    (root / "b").mkdir()
    (root / "b" / "c.txt").write_bytes(b"world")
    return root


@pytest.fixture
def nested_tree(tmp_path: Path) -> Path:
    """
    Create a wider tree with binary content, empty files and empty folders.
    """
    root = tmp_path / "nested"
    root.mkdir()
    (root / "package.json").write_text('{"name": "demo"}', encoding="utf-8")
    (root / "empty.txt").write_bytes(b"")
    (root / "blob.bin").write_bytes(bytes(range(256)) * 40)
    (root / "empty_dir").mkdir()
    deep = root / "node_modules" / "xcraft-core-host" / "bin"
    deep.mkdir(parents=True)
    (deep / "host").write_text("console.log('boot');\n", encoding="utf-8")
    (root / "node_modules" / "unicodé.js").write_text("// ü\n", encoding="utf-8")
    return root


@pytest.fixture
def build_config(sample_tree: Path, tmp_path: Path) -> Dict[str, Any]:
    """
    Return a valid, complete build configuration targeting ``sample_tree``.
    """
    return {
        "input_path": str(sample_tree),
        "output_dir": str(tmp_path / "dist"),
        "artifact_name": "snapshot.bin",
        "chunk_size": 10,
        "max_workers": 4,
        "symlink_policy": "skip",
        "keep_manifest": True,
        "overwrite": False,
    }
