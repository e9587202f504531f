from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides cross-platform path manipulation, directory creation, and
integrity helpers. Acts as an abstraction over the 'os' module to ensure
uniform behavior across Windows and Unix-like systems.
"""

import hashlib
import os
from typing import Iterable, List, Optional, Tuple

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "Blitzpack"
UNIX_APP_DIR_NAME = ".blitzpack"
HASH_BLOCK_SIZE = 1024 * 1024

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/Blitzpack
    - Linux/Mac: ~/.blitzpack

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def is_within(path: str, root: str) -> bool:
    """Return True if ``path`` is ``root`` or lies below it."""
    path_abs = os.path.abspath(path)
    root_abs = os.path.abspath(root)
    try:
        return os.path.commonpath([path_abs, root_abs]) == root_abs
    except ValueError:
        return False

# -----------------------------------------------------------------------------
# FILESYSTEM OPERATIONS
# -----------------------------------------------------------------------------

def check_existing_output_files(paths: Iterable[str]) -> List[str]:
    """
    Identify files that already exist among the projected outputs.

    Args:
        paths: Absolute paths to check for existence.

    Returns:
        List[str]: Paths that already exist.
    """
    return [p for p in paths if os.path.exists(p)]


def safe_mkdir(path: str) -> Tuple[bool, Optional[str]]:
    """
    Attempt to recursively create a directory structure safely.

    Args:
        path: Target directory path.

    Returns:
        Tuple[bool, Optional[str]]: (Success flag, Error message if applicable).
    """
    try:
        os.makedirs(path, exist_ok=True)
        return True, None
    except OSError as e:
        return False, str(e)


def remove_quietly(path: str) -> bool:
    """Delete a file if present. Returns True when a file was removed."""
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False


def calculate_sha256(file_path: str) -> str:
    """Compute the SHA-256 digest of a local file. Raises OSError on failure."""
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()
