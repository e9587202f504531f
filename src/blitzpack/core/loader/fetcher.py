from __future__ import annotations

"""
Chunk Transport Client.

Fetches the chunk files of a snapshot (and optionally its manifest) over
HTTP. Each chunk is read fully before it is returned. Failed or truncated
responses are retried a bounded number of times, then reported as
``TransportFailure``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests

from blitzpack.domain.constants import DEFAULT_ARTIFACT_NAME, MANIFEST_SUFFIX
from blitzpack.domain.errors import TransportFailure
from blitzpack.domain.snapshot_models import SnapshotManifest, chunk_name
from blitzpack.infra.network.common import DEFAULT_TIMEOUT, USER_AGENT, join_url

logger = logging.getLogger(__name__)


class ChunkFetcher:
    """
    Downloads chunks '<artifact>.<index>' relative to a base URL.

    Args:
        base_url: URL of the directory serving the chunk files.
        artifact_name: Artifact base name (default 'snapshot.bin').
        session: Optional pre-configured ``requests.Session``.
        timeout: Per-request timeout in seconds.
        retries: Additional attempts per chunk after the first failure.
        parallel: Number of concurrent downloads (1 = strictly sequential).
    """

    def __init__(
            self,
            base_url: str,
            artifact_name: str = DEFAULT_ARTIFACT_NAME,
            *,
            session: Optional[requests.Session] = None,
            timeout: float = DEFAULT_TIMEOUT,
            retries: int = 2,
            parallel: int = 1,
    ):
        self.base_url = base_url
        self.artifact_name = artifact_name
        self.session = session or requests.Session()
        # Content-Length must describe the bytes we receive
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept-Encoding": "identity"})
        self.timeout = timeout
        self.retries = max(0, retries)
        self.parallel = max(1, parallel)

    def chunk_url(self, index: int) -> str:
        return join_url(self.base_url, chunk_name(self.artifact_name, index))

    def manifest_url(self) -> str:
        return join_url(self.base_url, self.artifact_name + MANIFEST_SUFFIX)

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    def fetch_manifest(self) -> SnapshotManifest:
        """Download and parse the manifest sidecar."""
        url = self.manifest_url()
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return SnapshotManifest.from_dict(response.json())
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"Manifest fetch failed: {e}", url=url) from e
        except ValueError as e:
            raise TransportFailure(f"Manifest is invalid: {e}", url=url) from e

    def fetch_chunk(self, index: int) -> bytes:
        """
        Download one chunk, retrying transient failures.

        Raises:
            TransportFailure: When every attempt failed.
        """
        url = self.chunk_url(index)
        last_error: Optional[Exception] = None

        for attempt in range(1 + self.retries):
            if attempt:
                logger.warning(f"Retrying chunk {index} (attempt {attempt + 1}): {last_error}")
            try:
                return self._get_once(index, url)
            except (requests.exceptions.RequestException, TransportFailure) as e:
                last_error = e

        raise TransportFailure(
            f"Chunk {index} could not be fetched from {url}: {last_error}",
            index=index,
            url=url,
        ) from last_error

    def fetch_all(self, count: int) -> List[bytes]:
        """
        Download chunks ``0 .. count-1`` and return them in index order.
        """
        if count < 0:
            raise ValueError("chunk count must be non-negative")
        logger.info(f"Fetching {count} chunk(s) from {self.base_url}")

        if self.parallel == 1 or count <= 1:
            return [self.fetch_chunk(i) for i in range(count)]

        with ThreadPoolExecutor(max_workers=self.parallel, thread_name_prefix="ChunkFetch") as executor:
            return list(executor.map(self.fetch_chunk, range(count)))

    # -------------------------------------------------------------------------
    # PRIVATE HELPERS
    # -------------------------------------------------------------------------

    def _get_once(self, index: int, url: str) -> bytes:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        body = response.content

        expected = response.headers.get("Content-Length")
        encoding = response.headers.get("Content-Encoding", "identity").strip().lower()
        if encoding != "identity":
            # requests already decoded the body; the header counts encoded bytes
            return body
        if expected is not None and expected.isdigit() and int(expected) != len(body):
            raise TransportFailure(
                f"Chunk {index} truncated: received {len(body)} of {expected} bytes",
                index=index,
                url=url,
            )
        return body
