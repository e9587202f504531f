from __future__ import annotations

"""
Integration tests for the Build Pipeline.

Runs ``run_pipeline`` against real directories and checks the chunk set,
the manifest sidecar, overwrite protection and failure cleanup.
"""

import hashlib
import json
import math
import os
import socket
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

from blitzpack.core.pipeline.engine import run_pipeline
from blitzpack.core.snapshot.decoder import decode_snapshot
from blitzpack.core.snapshot.splitter import join_chunks


def test_build_produces_chunks_and_manifest(build_config: Dict[str, Any]) -> None:
    result = run_pipeline(build_config)

    assert result.ok, result.error
    assert result.chunk_count == math.ceil(result.total_size / 10)
    assert (result.directories, result.files) == (1, 2)
    for path in result.chunk_paths:
        assert os.path.getsize(path) <= 10
    assert not os.path.exists(result.artifact_path)

    manifest = json.loads(Path(result.manifest_path).read_text(encoding="utf-8"))
    buffer = join_chunks(result.artifact_path, result.chunk_count)
    assert manifest["chunk_count"] == result.chunk_count
    assert manifest["total_size"] == len(buffer)
    assert manifest["sha256"] == hashlib.sha256(buffer).hexdigest()
    assert manifest["format"] == "msgpack"

    decoded = decode_snapshot(buffer)
    assert decoded["d"]["a.txt"]["f"]["c"] == b"hello"


def test_manifest_can_be_disabled(build_config: Dict[str, Any]) -> None:
    build_config["keep_manifest"] = False
    result = run_pipeline(build_config)

    assert result.ok
    assert result.manifest_path == ""
    assert not os.path.exists(result.artifact_path + ".json")


def test_existing_chunks_abort_without_overwrite(build_config: Dict[str, Any]) -> None:
    first = run_pipeline(build_config)
    assert first.ok

    second = run_pipeline(build_config)
    assert second.ok is False
    assert "overwrite" in second.error
    assert second.summary["existing_files"]


def test_overwrite_replaces_previous_chunk_set(build_config: Dict[str, Any], sample_tree: Path) -> None:
    build_config["chunk_size"] = 4
    first = run_pipeline(build_config)
    assert first.ok

    build_config["chunk_size"] = 1024
    build_config["overwrite"] = True
    second = run_pipeline(build_config)

    assert second.ok, second.error
    assert second.chunk_count == 1
    assert not os.path.exists(first.chunk_paths[1])
    assert second.summary["existing_files_before_run"]


def test_output_inside_input_is_not_packed(build_config: Dict[str, Any], sample_tree: Path) -> None:
    build_config["output_dir"] = ""
    first = run_pipeline(build_config)
    assert first.ok, first.error
    assert first.output_dir == str(sample_tree)

    build_config["overwrite"] = True
    second = run_pipeline(build_config)
    assert second.ok, second.error

    decoded = decode_snapshot(join_chunks(second.artifact_path, second.chunk_count))
    assert sorted(decoded["d"]) == ["a.txt", "b"]
    assert second.total_size == first.total_size


def test_dry_run_writes_nothing(build_config: Dict[str, Any]) -> None:
    result = run_pipeline(build_config, dry_run=True)

    assert result.ok
    assert result.summary["dry_run"] is True
    assert result.chunk_count == math.ceil(result.total_size / 10)
    assert not os.path.exists(build_config["output_dir"])


def test_missing_input_is_an_error(build_config: Dict[str, Any], tmp_path: Path) -> None:
    build_config["input_path"] = str(tmp_path / "nope")
    result = run_pipeline(build_config)

    assert result.ok is False
    assert "Invalid input directory" in result.error


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="requires unix domain sockets")
def test_unsupported_entry_leaves_no_artifact(build_config: Dict[str, Any], sample_tree: Path) -> None:
    sock_path = sample_tree / "b" / "s"
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        server.bind(str(sock_path))
        result = run_pipeline(build_config)
    finally:
        server.close()

    assert result.ok is False
    assert "socket" in result.error
    assert str(sock_path) in result.error

    output_dir = Path(build_config["output_dir"])
    assert not output_dir.exists() or list(output_dir.iterdir()) == []


def test_symlinks_are_skipped_by_default(build_config: Dict[str, Any], sample_tree: Path) -> None:
    try:
        os.symlink(str(sample_tree / "a.txt"), str(sample_tree / "link.txt"))
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")

    result = run_pipeline(build_config)
    assert result.ok
    decoded = decode_snapshot(join_chunks(result.artifact_path, result.chunk_count))
    assert "link.txt" not in decoded["d"]

    build_config["symlink_policy"] = "error"
    build_config["overwrite"] = True
    strict = run_pipeline(build_config)
    assert strict.ok is False
    assert "symbolic link" in strict.error


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="filesystem enforces UTF-8 names")
def test_non_utf8_name_fails_the_build(build_config: Dict[str, Any], sample_tree: Path) -> None:
    bad = os.path.join(os.fsencode(str(sample_tree)), b"bad\xff.txt")
    try:
        with open(bad, "wb") as f:
            f.write(b"x")
    except OSError:
        pytest.skip("filesystem rejects non UTF-8 names")

    result = run_pipeline(build_config)

    assert result.ok is False
    assert "non UTF-8 name" in result.error
    assert not os.path.exists(build_config["output_dir"])
