"""Interactive console commands for a running watch session."""

import logging
import sys
from typing import TextIO

from websync.controller import WebSyncController

logger = logging.getLogger(__name__)

PROMPT = "Type [r] to refresh manually, [c] to compile, [q] to quit..."


def run_console(
    controller: WebSyncController,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Read single-letter commands until 'q' or end of input.

    Args:
        controller: Started controller to drive
        stdin: Command source (default: sys.stdin)
        stdout: Where the prompt is printed (default: sys.stdout)
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    print(PROMPT, file=stdout)
    for line in stdin:
        command = line.strip().lower()
        if command == "q":
            break
        elif command == "r":
            controller.force_refresh()
        elif command == "c":
            controller.compile()
        elif command:
            print(f"Unknown command: {command!r}. {PROMPT}", file=stdout)

    logger.debug("Console loop finished")
