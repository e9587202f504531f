from __future__ import annotations

"""
Integration tests for FileSystem Infrastructure.

Validates path normalization, cross-platform data directory resolution,
containment checks and output collision detection.
"""

import hashlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from blitzpack.infra.fs import (
    calculate_sha256,
    check_existing_output_files,
    get_user_data_dir,
    is_within,
    normalize_path,
    remove_quietly,
    safe_mkdir,
)

# -----------------------------------------------------------------------------
# PATH RESOLUTION TESTS
# -----------------------------------------------------------------------------

def test_get_user_data_dir_windows() -> None:
    """Resolution of %LOCALAPPDATA% on Windows systems."""
    mock_appdata = "C:/Users/Test/AppData/Local"
    with patch("os.name", "nt"):
        with patch.dict(os.environ, {"LOCALAPPDATA": mock_appdata}):
            with patch("os.makedirs"):
                path = get_user_data_dir()
                assert "Blitzpack" in path


def test_get_user_data_dir_unix() -> None:
    """Resolution of ~/.blitzpack on Unix-like systems."""
    with patch("os.name", "posix"):
        with patch("os.path.expanduser", return_value="/home/testuser"):
            with patch("os.makedirs"):
                path = get_user_data_dir()
                assert path.replace("\\", "/").endswith("/home/testuser/.blitzpack")


def test_normalize_path_expansion() -> None:
    with patch.dict(os.environ, {"SNAP_VAR": "my_folder"}):
        path = normalize_path("$SNAP_VAR/sub", fallback=".")
        assert path.endswith(os.path.join("my_folder", "sub"))


def test_normalize_path_fallback() -> None:
    assert normalize_path("   ", fallback="/srv/app") == os.path.abspath("/srv/app")


def test_is_within(tmp_path: Path) -> None:
    assert is_within(str(tmp_path / "a" / "b"), str(tmp_path))
    assert is_within(str(tmp_path), str(tmp_path))
    assert not is_within(str(tmp_path.parent), str(tmp_path))
    assert not is_within(str(tmp_path) + "-sibling", str(tmp_path))

# -----------------------------------------------------------------------------
# FILESYSTEM OPERATIONS TESTS
# -----------------------------------------------------------------------------

def test_check_existing_output_files(tmp_path: Path) -> None:
    (tmp_path / "snapshot.bin.0").write_bytes(b"x")
    (tmp_path / "snapshot.bin.json").write_text("{}")

    candidates = [str(tmp_path / n) for n in ("snapshot.bin.0", "snapshot.bin.json", "snapshot.bin.1")]
    existing = check_existing_output_files(candidates)

    assert existing == candidates[:2]


def test_safe_mkdir_success(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "nested" / "dir"
    success, err = safe_mkdir(str(target))

    assert success is True
    assert err is None
    assert target.exists()


def test_safe_mkdir_permission_error() -> None:
    with patch("os.makedirs", side_effect=OSError("Permission Denied")):
        success, err = safe_mkdir("/root/forbidden")
        assert success is False
        assert "Permission Denied" in err


def test_remove_quietly(tmp_path: Path) -> None:
    target = tmp_path / "gone"
    target.write_bytes(b"1")
    assert remove_quietly(str(target)) is True
    assert remove_quietly(str(target)) is False


def test_calculate_sha256(tmp_path: Path) -> None:
    target = tmp_path / "data"
    target.write_bytes(b"blitz" * 1000)
    assert calculate_sha256(str(target)) == hashlib.sha256(b"blitz" * 1000).hexdigest()

    with pytest.raises(OSError):
        calculate_sha256(str(tmp_path / "missing"))
