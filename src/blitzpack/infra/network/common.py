from __future__ import annotations

"""
Chunk Transport Constants.

Identifies the loader to chunk servers and provides the URL and digest
helpers shared by the chunk fetcher and buffer verification.
"""

import hashlib

USER_AGENT = "Blitzpack-Loader/1.0.0"
DEFAULT_TIMEOUT = 30


def sha256_bytes(data: bytes) -> str:
    """Compute SHA-256 digest of an in-memory buffer."""
    return hashlib.sha256(data).hexdigest()


def join_url(base_url: str, name: str) -> str:
    """Append a relative file name to a base URL."""
    if not base_url:
        return name
    return base_url.rstrip("/") + "/" + name.lstrip("/")
