from __future__ import annotations

"""
Unit tests for configuration persistence.
"""

import json
from pathlib import Path
from unittest.mock import patch

from blitzpack.domain.config import get_default_config, load_config, save_config


def test_defaults_contain_every_key() -> None:
    cfg = get_default_config()
    assert cfg["artifact_name"] == "snapshot.bin"
    assert cfg["chunk_size"] == 4 * 1024 * 1024
    assert cfg["symlink_policy"] == "skip"


def test_save_then_load_restores_settings(tmp_path: Path) -> None:
    config_file = tmp_path / "config.json"
    with patch("blitzpack.domain.config.get_config_file", return_value=str(config_file)):
        cfg = get_default_config()
        cfg["chunk_size"] = 1024
        save_config(cfg)

        loaded = load_config()

    assert loaded["chunk_size"] == 1024
    assert json.loads(config_file.read_text(encoding="utf-8"))["version"] == "1.0.0"


def test_corrupted_file_falls_back_to_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json", encoding="utf-8")
    with patch("blitzpack.domain.config.get_config_file", return_value=str(config_file)):
        loaded = load_config()
    assert loaded["chunk_size"] == get_default_config()["chunk_size"]


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"settings": {"bogus": 1, "max_workers": 3}}), encoding="utf-8")
    with patch("blitzpack.domain.config.get_config_file", return_value=str(config_file)):
        loaded = load_config()
    assert "bogus" not in loaded
    assert loaded["max_workers"] == 3
