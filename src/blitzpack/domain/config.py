from __future__ import annotations

"""
Configuration Domain Management.

Handles the build configuration dictionary and its persistence as JSON in
the user data directory. Missing keys always fall back to defaults.
"""

import json
import logging
import os
from typing import Any, Dict

from blitzpack.domain.constants import (
    DEFAULT_ARTIFACT_NAME,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_WORKERS,
    SYMLINK_SKIP,
)
from blitzpack.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE_NAME = "config.json"
CURRENT_CONFIG_VERSION = "1.0.0"


def get_config_file() -> str:
    """Absolute path of the persisted configuration file."""
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default build configuration.

    An empty ``output_dir`` writes the chunk set inside the input directory
    itself; artifacts left there by a previous run are excluded from the walk.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    base = os.getcwd()
    return {
        # IO Paths
        "input_path": base,
        "output_dir": "",
        "artifact_name": DEFAULT_ARTIFACT_NAME,

        # Snapshot
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "max_workers": DEFAULT_MAX_WORKERS,
        "symlink_policy": SYMLINK_SKIP,

        # Output
        "keep_manifest": True,
        "overwrite": False,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Load the persisted configuration merged over defaults.

    Returns:
        Dict[str, Any]: The loaded configuration, or defaults on failure.
    """
    config = get_default_config()
    path = get_config_file()

    if not os.path.exists(path):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Using defaults.")
        return config

    settings = data.get("settings", {})
    if isinstance(settings, dict):
        config.update({k: v for k, v in settings.items() if k in config})
    return config


def save_config(config: Dict[str, Any]) -> None:
    """
    Persist the configuration to disk.

    Args:
        config: The configuration dictionary to save.
    """
    path = get_config_file()
    state = {"version": CURRENT_CONFIG_VERSION, "settings": config}
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {path}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
