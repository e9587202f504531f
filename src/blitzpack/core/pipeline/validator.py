from __future__ import annotations

"""
Configuration Validation Service.

Acts as the gatekeeper for the build pipeline, ensuring that the
configuration dictionary conforms to the expected schema. Handles type
coercion and default value injection.
"""

import logging
from typing import Any, Dict, List, Tuple

from blitzpack.domain.config import get_default_config
from blitzpack.domain.constants import SYMLINK_POLICIES

logger = logging.getLogger(__name__)

_STRING_FIELDS = ["input_path", "output_dir", "artifact_name"]
_BOOL_FIELDS = ["keep_manifest", "overwrite"]
_POSITIVE_INT_FIELDS = ["chunk_size", "max_workers"]
_OPTIONAL_STRING_FIELDS = ["output_dir"]


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize the provided configuration dictionary.

    Converts untrusted inputs (CLI, persisted JSON) into strictly typed
    parameters and fills missing keys with domain defaults.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raises exceptions on invalid values instead of coercing.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and
                                          a list of warnings.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    for field in _STRING_FIELDS:
        merged[field] = _as_str(
            merged.get(field), defaults.get(field, ""), field, warnings, strict,
            allow_empty=field in _OPTIONAL_STRING_FIELDS,
        )

    for field in _BOOL_FIELDS:
        merged[field] = _as_bool(
            merged.get(field), defaults.get(field, False), field, warnings, strict
        )

    for field in _POSITIVE_INT_FIELDS:
        merged[field] = _as_positive_int(
            merged.get(field), defaults[field], field, warnings, strict
        )

    merged["symlink_policy"] = _as_choice(
        merged.get("symlink_policy"), defaults["symlink_policy"],
        SYMLINK_POLICIES, "symlink_policy", warnings, strict
    )

    merged["artifact_name"] = _normalize_artifact_name(
        merged["artifact_name"], defaults["artifact_name"], warnings, strict
    )

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(
        value: Any,
        fallback: str,
        field: str,
        warnings: List[str],
        strict: bool,
        allow_empty: bool = False,
) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        if v or allow_empty:
            return v
        return fallback

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Coerce various input types into native booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback

    if not strict:
        if isinstance(value, (int, float)) and value in (0, 1):
            warnings.append(f"Field '{field}' converted from number {value} to bool.")
            return bool(value)
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("true", "1", "yes", "y", "on"):
                warnings.append(f"Field '{field}' converted from '{value}' to True.")
                return True
            if s in ("false", "0", "no", "n", "off"):
                warnings.append(f"Field '{field}' converted from '{value}' to False.")
                return False

    msg = f"Invalid field '{field}': expected bool, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_positive_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce numeric inputs (and numeric strings) into positive integers."""
    if value is None:
        return fallback

    number: Any = value
    if isinstance(value, str) and not strict:
        try:
            number = parse_size(value)
            warnings.append(f"Field '{field}' converted from '{value}' to {number}.")
        except ValueError:
            number = None

    if isinstance(number, int) and not isinstance(number, bool):
        if number > 0:
            return number
        msg = f"Invalid field '{field}': must be positive, received {number}."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Using fallback.")
        return fallback

    msg = f"Invalid field '{field}': expected int, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_choice(
        value: Any,
        fallback: str,
        choices: Tuple[str, ...],
        field: str,
        warnings: List[str],
        strict: bool,
) -> str:
    """Restrict a string field to a closed set of values."""
    if value is None:
        return fallback
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()

    msg = f"Invalid field '{field}': expected one of {list(choices)}, received {value!r}."
    if strict:
        raise ValueError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: DOMAIN NORMALIZATION
# -----------------------------------------------------------------------------

def _normalize_artifact_name(name: str, fallback: str, warnings: List[str], strict: bool) -> str:
    """The artifact name is a bare file name; directories belong in output_dir."""
    if "/" in name or "\\" in name or name in (".", ".."):
        msg = f"Invalid artifact name '{name}': must be a plain file name."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Using fallback.")
        return fallback
    return name


_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024 ** 2,
    "mb": 1024 ** 2,
    "mib": 1024 ** 2,
    "g": 1024 ** 3,
    "gb": 1024 ** 3,
    "gib": 1024 ** 3,
}


def parse_size(text: str) -> int:
    """
    Parse a byte count such as '4194304', '512k' or '4MiB' (binary units).

    Raises:
        ValueError: If the text is not a recognized size.
    """
    s = text.strip().lower().replace(" ", "")
    digits = s.rstrip("abcdefghijklmnopqrstuvwxyz")
    unit = s[len(digits):]
    if not digits.isdigit() or unit not in _SIZE_UNITS:
        raise ValueError(f"Unrecognized size: {text!r}")
    return int(digits) * _SIZE_UNITS[unit]
