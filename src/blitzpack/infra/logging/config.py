from __future__ import annotations

"""
Logging Configuration Models.

Holds the settings the CLI passes to ``configure_logging`` and the name of
the diagnostic console channel. The console channel carries the output of
processes booted inside the sandbox, so its records are rendered without the
severity prefix used for the application's own messages.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

CONSOLE_CHANNEL: str = "blitzpack.console"

_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Settings of the logging subsystem.

    Attributes:
        level: Minimum severity captured by every handler.
        console: Write records to stderr.
        log_file: Optional path of a rotating log file.
        max_bytes: Size of one log file before it rolls over.
        backup_count: Rolled-over files kept next to the active one.
        console_fmt: Format of application records on stderr.
        channel_fmt: Format of diagnostic console records on stderr.
        file_fmt: Format of every record in the log file.
        datefmt: Timestamp format of the log file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3

    console_fmt: str = "%(levelname)s | %(message)s"
    channel_fmt: str = "%(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def for_cli(cls, debug: bool = False, log_file: Optional[str] = None) -> "LoggingConfig":
        """Settings for one CLI invocation: stderr always, a file on request."""
        return cls(level="DEBUG" if debug else "INFO", console=True, log_file=log_file)
