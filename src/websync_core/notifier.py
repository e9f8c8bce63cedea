"""Pluggable notification protocol for websync_core.

Decouples handlers and the controller from how the operator is told about
build failures and lifecycle events. Replace with custom handlers for
testing or embedding.
"""

import logging
import sys
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)


class WebSyncNotifier(Protocol):
    """Protocol for notifications - host can provide custom implementation."""

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def warning(self, message: str) -> None:
        """Warning message."""
        ...

    def error(self, message: str) -> None:
        """Error message."""
        ...

    def alert(self, message: str) -> None:
        """Out-of-band alert that should get the operator's attention (build failure)."""
        ...


class NoOpNotifier:
    """Silent no-op notifier - default for embedded mode."""

    def info(self, msg: str) -> None:
        """Do nothing."""
        pass

    def warning(self, msg: str) -> None:
        """Do nothing."""
        pass

    def error(self, msg: str) -> None:
        """Do nothing."""
        pass

    def alert(self, msg: str) -> None:
        """Do nothing."""
        pass


class ConsoleNotifier:
    """Logs through stdlib logging and rings the terminal bell on alerts."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stderr

    def info(self, msg: str) -> None:
        logger.info(msg)

    def warning(self, msg: str) -> None:
        logger.warning(msg)

    def error(self, msg: str) -> None:
        logger.error(msg)

    def alert(self, msg: str) -> None:
        logger.error(msg)
        self.stream.write("\a")
        self.stream.flush()
