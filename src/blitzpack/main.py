from __future__ import annotations

"""
Main Entry Point and Global Supervisor.

Routes execution to the CLI and installs a global exception hook so that
fatal crashes are logged with their full stack trace.
"""

import logging
import os
import sys
import traceback
from typing import Any

# Make 'src' importable when run as a script
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.dirname(BASE_DIR)
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


def global_exception_handler(exctype: type[BaseException], value: BaseException, tb: Any) -> None:
    """
    Trap unhandled exceptions, log them and exit with status 1.

    Args:
        exctype: Exception class.
        value: Exception instance.
        tb: Traceback object.
    """
    if issubclass(exctype, KeyboardInterrupt):
        sys.__excepthook__(exctype, value, tb)
        return

    stack_trace = "".join(traceback.format_exception(exctype, value, tb))
    logging.getLogger("blitzpack.supervisor").critical(f"FATAL EXCEPTION DETECTED: {value}\n{stack_trace}")

    print("\n" + "=" * 80, file=sys.stderr)
    print("CRITICAL ERROR (BLITZPACK)", file=sys.stderr)
    print("=" * 80, file=sys.stderr)
    print(stack_trace, file=sys.stderr)
    sys.exit(1)


def main() -> int:
    sys.excepthook = global_exception_handler

    from blitzpack.interface.cli.app import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
