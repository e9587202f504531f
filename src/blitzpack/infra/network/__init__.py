from __future__ import annotations

"""
Network Communication Infrastructure.

Shared HTTP constants and integrity helpers for the chunk transport.
"""

from blitzpack.infra.network.common import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    join_url,
    sha256_bytes,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
    "join_url",
    "sha256_bytes",
]
