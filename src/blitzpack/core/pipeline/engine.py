from __future__ import annotations

"""
Snapshot build pipeline.

This module coordinates the whole build side:
1. Validates configuration and paths.
2. Checks for collisions with a previous chunk set.
3. Walks the input tree.
4. Encodes the tree into a single artifact.
5. Splits the artifact into bounded-size chunks.
6. Writes the manifest sidecar used by the client loader.
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from blitzpack.core.pipeline.validator import validate_config
from blitzpack.core.snapshot.encoder import encoded_size, write_snapshot
from blitzpack.core.snapshot.splitter import count_chunks, split_artifact
from blitzpack.core.snapshot.walker import walk_tree
from blitzpack.domain.constants import MANIFEST_SUFFIX
from blitzpack.domain.errors import BlitzpackError, SnapshotIOError
from blitzpack.domain.snapshot_models import (
    ChunkSet,
    PipelineResult,
    SnapshotManifest,
    chunk_path,
    create_error_result,
    create_success_result,
)
from blitzpack.infra.fs import (
    calculate_sha256,
    check_existing_output_files,
    is_within,
    normalize_path,
    remove_quietly,
    safe_mkdir,
)

logger = logging.getLogger(__name__)


def run_pipeline(
        config: Optional[Dict[str, Any]],
        *,
        dry_run: bool = False,
) -> PipelineResult:
    """
    Execute the full snapshot build.

    Args:
        config: The configuration dictionary (raw or partial).
        dry_run: If True, compute the projected chunk set without writing.

    Returns:
        PipelineResult: Object containing status, metrics, and summary.
    """
    logger.info("Pipeline execution started.")
    started = time.perf_counter()

    # -------------------------------------------------------------------------
    # 1) Config & Path Normalization
    # -------------------------------------------------------------------------
    cfg, warnings = validate_config(config, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")

    input_path = normalize_path(cfg["input_path"], os.getcwd())
    if not os.path.isdir(input_path):
        msg = f"Invalid input directory: {input_path}"
        logger.error(msg)
        return create_error_result(msg, cfg, input_path)

    output_dir = normalize_path(cfg["output_dir"], input_path)
    cfg["output_dir"] = output_dir
    artifact_path = os.path.join(output_dir, cfg["artifact_name"])
    manifest_path = artifact_path + MANIFEST_SUFFIX

    # -------------------------------------------------------------------------
    # 2) Overwrite Check
    # -------------------------------------------------------------------------
    previous = _previous_outputs(artifact_path, manifest_path)
    if previous and not cfg["overwrite"] and not dry_run:
        msg = "Existing snapshot files detected and overwrite=False. Aborting."
        logger.warning(f"{msg} Files: {previous}")
        return create_error_result(
            msg, cfg, input_path, artifact_path,
            summary_extra={"existing_files": previous}
        )

    exclude = _build_exclude(input_path, output_dir, artifact_path, manifest_path)

    # -------------------------------------------------------------------------
    # 3) Walk
    # -------------------------------------------------------------------------
    try:
        tree = walk_tree(
            input_path,
            max_workers=cfg["max_workers"],
            symlink_policy=cfg["symlink_policy"],
            exclude=exclude,
        )
    except BlitzpackError as e:
        logger.error(f"Walk failed: {e}")
        return create_error_result(str(e), cfg, input_path, artifact_path)

    directories, files = tree.count()
    chunk_size = cfg["chunk_size"]

    if dry_run:
        try:
            size = encoded_size(tree)
        except BlitzpackError as e:
            logger.error(f"Encode failed: {e}")
            return create_error_result(str(e), cfg, input_path, artifact_path)
        projected = ChunkSet(
            base_path=artifact_path,
            chunk_size=chunk_size,
            sizes=_projected_sizes(size, chunk_size),
        )
        logger.info("Dry run: no files written.")
        return create_success_result(
            cfg, input_path, output_dir, projected, directories, files,
            summary_extra=_summary(started, dry_run=True, existing=previous),
        )

    # -------------------------------------------------------------------------
    # 4) Encode & Split
    # -------------------------------------------------------------------------
    ok, err = safe_mkdir(output_dir)
    if not ok:
        msg = f"Failed to create output directory {output_dir}: {err}"
        logger.critical(msg)
        return create_error_result(msg, cfg, input_path, artifact_path)

    _remove_previous(previous)

    try:
        write_snapshot(tree, artifact_path)
        digest = _digest(artifact_path)
        chunks = split_artifact(artifact_path, chunk_size)
    except BlitzpackError as e:
        logger.error(f"Snapshot build failed: {e}")
        _discard_partial(artifact_path)
        return create_error_result(str(e), cfg, input_path, artifact_path)

    # -------------------------------------------------------------------------
    # 5) Manifest
    # -------------------------------------------------------------------------
    written_manifest = ""
    if cfg["keep_manifest"]:
        manifest = SnapshotManifest(
            artifact=os.path.basename(artifact_path),
            chunk_count=chunks.count,
            chunk_size=chunks.chunk_size,
            total_size=chunks.total_size,
            sha256=digest,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            write_manifest(manifest, manifest_path)
            written_manifest = manifest_path
        except SnapshotIOError as e:
            logger.error(str(e))
            _discard_partial(artifact_path)
            return create_error_result(str(e), cfg, input_path, artifact_path)

    logger.info("Pipeline completed successfully.")
    return create_success_result(
        cfg, input_path, output_dir, chunks, directories, files,
        manifest_path=written_manifest,
        summary_extra=_summary(started, dry_run=False, existing=previous, sha256=digest),
    )


def write_manifest(manifest: SnapshotManifest, path: str) -> None:
    """Persist the manifest sidecar as JSON."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(manifest.to_dict(), f, indent=2)
    except OSError as e:
        raise SnapshotIOError("manifest", path, str(e)) from e


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _previous_outputs(artifact_path: str, manifest_path: str) -> List[str]:
    """List files a previous run left for the same artifact name."""
    stale = [chunk_path(artifact_path, i) for i in range(count_chunks(artifact_path))]
    return check_existing_output_files([artifact_path, manifest_path]) + stale


def _remove_previous(paths: List[str]) -> None:
    for path in paths:
        remove_quietly(path)
    if paths:
        logger.debug(f"Removed {len(paths)} file(s) from a previous snapshot.")


def _discard_partial(artifact_path: str) -> None:
    """Remove the artifact and any chunks written before a failure."""
    remove_quietly(artifact_path)
    for i in range(count_chunks(artifact_path)):
        remove_quietly(chunk_path(artifact_path, i))
    remove_quietly(artifact_path + MANIFEST_SUFFIX)


def _digest(path: str) -> str:
    try:
        return calculate_sha256(path)
    except OSError as e:
        raise SnapshotIOError("encode", path, str(e)) from e


def _build_exclude(
        input_path: str,
        output_dir: str,
        artifact_path: str,
        manifest_path: str,
) -> Optional[Callable[[str], bool]]:
    """Keep our own outputs out of the walk when they live inside the input."""
    if not is_within(output_dir, input_path):
        return None

    chunk_prefix = artifact_path + "."

    def exclude(path: str) -> bool:
        if path in (artifact_path, manifest_path):
            return True
        return path.startswith(chunk_prefix) and path[len(chunk_prefix):].isdigit()

    return exclude


def _projected_sizes(total: int, chunk_size: int) -> List[int]:
    full, rest = divmod(total, chunk_size)
    return [chunk_size] * full + ([rest] if rest else [])


def _summary(started: float, *, dry_run: bool, existing: List[str], sha256: str = "") -> Dict[str, Any]:
    return {
        "dry_run": dry_run,
        "duration_s": round(time.perf_counter() - started, 3),
        "existing_files_before_run": list(existing),
        "sha256": sha256,
    }
