from __future__ import annotations

"""
Domain Constants.

Centralizes the wire-format keys and the conventional names shared by the
build side (walker, encoder, splitter) and the client loader.
"""

APP_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# SNAPSHOT FORMAT KEYS
# -----------------------------------------------------------------------------

DIRECTORY_KEY = "d"
FILE_KEY = "f"
CONTENTS_KEY = "c"

SNAPSHOT_FORMAT = "msgpack"
MANIFEST_VERSION = 1

# -----------------------------------------------------------------------------
# ARTIFACT DEFAULTS
# -----------------------------------------------------------------------------

DEFAULT_ARTIFACT_NAME = "snapshot.bin"
DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024  # 4 MiB
DEFAULT_MAX_WORKERS = 16

# Each directory adds two container levels to the encoding; msgpack decoders
# refuse nesting beyond 1024 levels.
MAX_TREE_DEPTH = 256
MANIFEST_SUFFIX = ".json"

SYMLINK_SKIP = "skip"
SYMLINK_ERROR = "error"
SYMLINK_POLICIES = (SYMLINK_SKIP, SYMLINK_ERROR)

# -----------------------------------------------------------------------------
# CLIENT LOADER DEFAULTS
# -----------------------------------------------------------------------------

DEFAULT_MOUNT_POINT = "horizon"
DEFAULT_ENTRY_COMMAND = "node"
DEFAULT_ENTRY_PATH = "node_modules/xcraft-core-host/bin/host"
DEFAULT_SERVER_PORT = 9080
DEFAULT_LOCALE = "en"
