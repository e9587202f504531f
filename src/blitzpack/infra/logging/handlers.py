from __future__ import annotations

"""
Logging Handlers and Formatters.

Every handler installed by ``configure_logging`` carries a tag so that a
reconfiguration removes exactly the handlers it owns and leaves those added
by pytest or embedding applications alone.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from blitzpack.infra.logging.config import CONSOLE_CHANNEL

_HANDLER_TAG_ATTR: str = "_blitzpack_handler"


def _tag_handler(handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_TAG_ATTR, True)


def _is_our_handler(handler: logging.Handler) -> bool:
    return bool(getattr(handler, _HANDLER_TAG_ATTR, False))


class _ChannelFormatter(logging.Formatter):
    """
    Render diagnostic console records (and their child loggers) with their
    own format; every other record uses the regular one.
    """

    def __init__(self, fmt: str, channel_fmt: str, channel: str = CONSOLE_CHANNEL):
        super().__init__(fmt)
        self._channel = channel
        self._channel_formatter = logging.Formatter(channel_fmt)

    def format(self, record: logging.LogRecord) -> str:
        if record.name == self._channel or record.name.startswith(self._channel + "."):
            return self._channel_formatter.format(record)
        return super().format(record)


def _create_stderr_handler(level_int: int, fmt: str, channel_fmt: str) -> logging.StreamHandler:
    """Stream handler on stderr; stdout stays reserved for command output."""
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level_int)
    sh.setFormatter(_ChannelFormatter(fmt, channel_fmt))
    _tag_handler(sh)
    return sh


def _create_rotating_file_handler(
        log_file: str,
        level_int: int,
        formatter: logging.Formatter,
        max_bytes: int,
        backup_count: int,
) -> Optional[RotatingFileHandler]:
    """
    Open a rotating log file, creating its directory when needed.

    Returns:
        Optional[RotatingFileHandler]: The handler, or None if the file
                                       cannot be opened (reported on stderr).
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        fh = RotatingFileHandler(
            log_file,
            maxBytes=int(max_bytes),
            backupCount=int(backup_count),
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"WARNING: Cannot open log file '{log_file}': {e}\n")
        return None

    fh.setLevel(level_int)
    fh.setFormatter(formatter)
    _tag_handler(fh)
    return fh
