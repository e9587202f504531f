from __future__ import annotations

"""
Snapshot Artifact Data Models.

Defines the persisted outputs of the build side (chunk sets and the
manifest sidecar) and the result object returned by the build pipeline to
the interface layer.
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from blitzpack.domain.constants import MANIFEST_VERSION, SNAPSHOT_FORMAT

# -----------------------------------------------------------------------------
# CHUNK SET
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkSet:
    """
    Ordered chunk files produced by splitting one artifact.

    Attributes:
        base_path: Path of the (removed) artifact; chunks are '<base_path>.<i>'.
        chunk_size: Configured maximum chunk size in bytes.
        sizes: Size of every chunk in index order.
    """
    base_path: str
    chunk_size: int
    sizes: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.sizes)

    @property
    def total_size(self) -> int:
        return sum(self.sizes)

    @property
    def paths(self) -> List[str]:
        return [chunk_path(self.base_path, i) for i in range(self.count)]


def chunk_path(base_path: str, index: int) -> str:
    """Build the file path of the chunk at ``index``."""
    return f"{base_path}.{index}"


def chunk_name(artifact_name: str, index: int) -> str:
    """Build the file name (URL-relative) of the chunk at ``index``."""
    return f"{os.path.basename(artifact_name)}.{index}"

# -----------------------------------------------------------------------------
# MANIFEST
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SnapshotManifest:
    """
    Sidecar description of a chunk set, used by the loader to size and
    verify the reassembled buffer.
    """
    artifact: str
    chunk_count: int
    chunk_size: int
    total_size: int
    sha256: str
    created_at: str = ""
    format: str = SNAPSHOT_FORMAT
    version: int = MANIFEST_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "SnapshotManifest":
        """
        Build a manifest from decoded JSON.

        Raises:
            ValueError: If a required key is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("Manifest must be a JSON object.")
        try:
            manifest = cls(
                artifact=str(data["artifact"]),
                chunk_count=int(data["chunk_count"]),
                chunk_size=int(data["chunk_size"]),
                total_size=int(data["total_size"]),
                sha256=str(data["sha256"]),
                created_at=str(data.get("created_at", "")),
                format=str(data.get("format", SNAPSHOT_FORMAT)),
                version=int(data.get("version", MANIFEST_VERSION)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid manifest: {e}") from e

        if manifest.format != SNAPSHOT_FORMAT:
            raise ValueError(f"Unsupported snapshot format: {manifest.format}")
        if manifest.chunk_count < 0 or manifest.total_size < 0:
            raise ValueError("Manifest sizes must be non-negative.")
        return manifest

# -----------------------------------------------------------------------------
# PIPELINE RESULT
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PipelineResult:
    """
    Unified result object of a complete build pipeline execution.

    Attributes:
        ok: Flag indicating success or failure.
        error: Descriptive message in case of failure.
        input_path: Normalized root directory that was packed.
        output_dir: Directory holding the chunk set.
        artifact_path: Base path of the artifact (chunks are suffixed).
        chunk_size: Configured chunk size.
        chunk_count: Number of chunk files written.
        total_size: Size of the encoded artifact in bytes.
        directories: Directories found below the root.
        files: Regular files encoded.
        manifest_path: Path of the manifest sidecar, if written.
        chunk_paths: Paths of every chunk file in index order.
        summary: Technical execution summary and statistics.
    """
    ok: bool
    error: str

    input_path: str
    output_dir: str
    artifact_path: str
    chunk_size: int

    chunk_count: int = 0
    total_size: int = 0
    directories: int = 0
    files: int = 0
    manifest_path: str = ""
    chunk_paths: List[str] = field(default_factory=list)

    summary: Dict[str, Any] = field(default_factory=dict)

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_error_result(
        error: str,
        cfg: Dict[str, Any],
        input_path: str,
        artifact_path: str = "",
        summary_extra: Optional[Dict[str, Any]] = None
) -> PipelineResult:
    """
    Create a failed pipeline result instance.

    Args:
        error: Detailed error description.
        cfg: The configuration used during the failed run.
        input_path: The target input directory.
        artifact_path: Artifact base path, when already resolved.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        PipelineResult: An immutable error result object.
    """
    return PipelineResult(
        ok=False,
        error=error,
        input_path=input_path,
        output_dir=cfg.get("output_dir", ""),
        artifact_path=artifact_path,
        chunk_size=int(cfg.get("chunk_size", 0) or 0),
        summary=summary_extra or {},
    )


def create_success_result(
        cfg: Dict[str, Any],
        input_path: str,
        output_dir: str,
        chunks: ChunkSet,
        directories: int,
        files: int,
        manifest_path: str = "",
        summary_extra: Optional[Dict[str, Any]] = None
) -> PipelineResult:
    """
    Create a successful pipeline result instance.

    Args:
        cfg: Final configuration used during execution.
        input_path: Normalized input directory.
        output_dir: Directory holding the chunk set.
        chunks: The persisted chunk set.
        directories: Directory count of the packed tree.
        files: File count of the packed tree.
        manifest_path: Path of the manifest sidecar ('' if not written).
        summary_extra: Final execution metrics.

    Returns:
        PipelineResult: An immutable success result object.
    """
    return PipelineResult(
        ok=True,
        error="",
        input_path=input_path,
        output_dir=output_dir,
        artifact_path=chunks.base_path,
        chunk_size=chunks.chunk_size,
        chunk_count=chunks.count,
        total_size=chunks.total_size,
        directories=directories,
        files=files,
        manifest_path=manifest_path,
        chunk_paths=chunks.paths,
        summary=summary_extra or {},
    )
