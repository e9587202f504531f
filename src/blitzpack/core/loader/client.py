from __future__ import annotations

"""
Client Loader.

Runs in the host of the sandboxed runtime. Reconstitutes the snapshot from
its chunks, mounts it atomically, boots the entry process and points the
content frame at the application server once it reports ready.

Fetch, mount and spawn failures are written to the diagnostic console
before they propagate.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from blitzpack.core.loader.fetcher import ChunkFetcher
from blitzpack.core.loader.runtime import (
    ContentFrame,
    SandboxProcess,
    SandboxRuntime,
)
from blitzpack.domain.constants import (
    DEFAULT_ARTIFACT_NAME,
    DEFAULT_ENTRY_COMMAND,
    DEFAULT_ENTRY_PATH,
    DEFAULT_LOCALE,
    DEFAULT_MOUNT_POINT,
    DEFAULT_SERVER_PORT,
)
from blitzpack.domain.errors import LoaderError, TransportFailure
from blitzpack.domain.snapshot_models import SnapshotManifest
from blitzpack.infra.logging import CONSOLE_CHANNEL
from blitzpack.infra.network.common import DEFAULT_TIMEOUT, sha256_bytes

logger = logging.getLogger(__name__)
console = logging.getLogger(CONSOLE_CHANNEL)


@dataclass(frozen=True)
class LoaderConfig:
    """
    Client loader settings.

    Attributes:
        base_url: URL serving the chunk files.
        chunk_count: Known chunk count; None to read it from the manifest.
        artifact_name: Artifact base name of the chunks.
        mount_point: Mount path, also the prefix of the entry path.
        entry_command: Program started inside the runtime.
        entry_path: Entry script relative to the mounted tree.
        server_port: The only port whose URL is attached to the frame.
        page_url: Origin of the invoking page, passed as --origin.
        locale: User locale, passed as --locale.
        fetch_retries: Extra attempts per chunk.
        parallel_fetches: Concurrent chunk downloads.
        timeout: Per-request timeout in seconds.
        spawn: Start the entry process after mounting.
    """
    base_url: str
    chunk_count: Optional[int] = None
    artifact_name: str = DEFAULT_ARTIFACT_NAME
    mount_point: str = DEFAULT_MOUNT_POINT
    entry_command: str = DEFAULT_ENTRY_COMMAND
    entry_path: str = DEFAULT_ENTRY_PATH
    server_port: int = DEFAULT_SERVER_PORT
    page_url: str = ""
    locale: str = DEFAULT_LOCALE
    fetch_retries: int = 2
    parallel_fetches: int = 1
    timeout: float = DEFAULT_TIMEOUT
    spawn: bool = True

    def entry_args(self) -> List[str]:
        """Arguments of the entry process: script path, origin and locale."""
        return [
            f"{self.mount_point}/{self.entry_path}",
            f"--origin={self.page_url}",
            f"--locale={self.locale}",
        ]


# -----------------------------------------------------------------------------
# BUFFER ASSEMBLY
# -----------------------------------------------------------------------------

def assemble_chunks(chunks: Sequence[bytes]) -> bytearray:
    """Copy chunks, in index order, into one buffer sized to their sum."""
    buffer = bytearray(sum(len(c) for c in chunks))
    view = memoryview(buffer)
    offset = 0
    for chunk in chunks:
        view[offset:offset + len(chunk)] = chunk
        offset += len(chunk)
    return buffer


def verify_buffer(buffer: bytes, manifest: SnapshotManifest) -> None:
    """Check the reassembled buffer against the manifest size and digest."""
    if len(buffer) != manifest.total_size:
        raise TransportFailure(
            f"Reassembled snapshot has {len(buffer)} bytes, expected {manifest.total_size}"
        )
    digest = sha256_bytes(buffer)
    if digest != manifest.sha256:
        raise TransportFailure("Reassembled snapshot failed SHA-256 verification")


# -----------------------------------------------------------------------------
# LOADER
# -----------------------------------------------------------------------------

class ClientLoader:
    """
    Fetch, mount and boot a chunked snapshot inside a sandboxed runtime.

    Args:
        config: Loader settings.
        runtime: Target sandboxed runtime.
        frame: Content frame receiving the application URL.
        fetcher: Optional pre-built chunk fetcher.
    """

    def __init__(
            self,
            config: LoaderConfig,
            runtime: SandboxRuntime,
            frame: Optional[ContentFrame] = None,
            fetcher: Optional[ChunkFetcher] = None,
    ):
        self.config = config
        self.runtime = runtime
        self.frame = frame or ContentFrame()
        self.fetcher = fetcher or ChunkFetcher(
            config.base_url,
            config.artifact_name,
            timeout=config.timeout,
            retries=config.fetch_retries,
            parallel=config.parallel_fetches,
        )
        self.process: Optional[SandboxProcess] = None

    def run(self) -> Optional[SandboxProcess]:
        """
        Execute the whole boot sequence.

        Returns:
            Optional[SandboxProcess]: The entry process, or None if spawning
                                      is disabled.

        Raises:
            TransportFailure, MountFailure, SpawnFailure
        """
        try:
            buffer = self.load_snapshot()
            self.runtime.on_server_ready(self._on_server_ready)
            self.mount(buffer)
            if not self.config.spawn:
                return None
            self.process = self.spawn()
        except LoaderError as e:
            console.error(f"{type(e).__name__}: {e}")
            raise
        return self.process

    def load_snapshot(self) -> bytearray:
        """Fetch every chunk and reassemble the snapshot buffer."""
        manifest: Optional[SnapshotManifest] = None
        count = self.config.chunk_count
        if count is None:
            manifest = self.fetcher.fetch_manifest()
            count = manifest.chunk_count

        buffer = assemble_chunks(self.fetcher.fetch_all(count))
        if manifest is not None:
            verify_buffer(buffer, manifest)
        console.info(f"Snapshot reassembled: {len(buffer)} bytes from {count} chunk(s).")
        return buffer

    def mount(self, buffer: bytearray) -> None:
        self.runtime.mkdir(self.config.mount_point)
        self.runtime.mount(buffer, self.config.mount_point)

    def spawn(self) -> SandboxProcess:
        process = self.runtime.spawn(self.config.entry_command, self.config.entry_args())
        process.pipe_output(console.info)
        return process

    def _on_server_ready(self, port: int, url: str) -> None:
        console.info(f"{port} {url}")
        if port == self.config.server_port:
            self.frame.attach(url)
