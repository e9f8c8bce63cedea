"""Change handler chain.

A notification walks the chain from its head. The first handler whose
extension matches gets to act; if its action reports the change as fully
handled the walk stops, otherwise the next handlers are tried. The last
handler matches everything and always claims the change.
"""

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from websync_core.browser import BrowserController
from websync_core.models import ChangeKind
from websync_core.notifier import NoOpNotifier, WebSyncNotifier

logger = logging.getLogger(__name__)

HandlerAction = Callable[[str, ChangeKind], bool]

# Shell conventions for "command not found" and "found but not executable"
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


@dataclass(frozen=True)
class ChangeHandler:
    """One link of the chain: an extension predicate and an action."""

    name: str
    extension: str
    """Target extension such as ".ts". Empty matches any object name."""

    action: HandlerAction
    """Returns True when the change is fully handled."""

    def matches(self, object_name: str) -> bool:
        if not self.extension:
            return True
        return object_name.lower().endswith(self.extension.lower())


class HandlerChain:
    """Ordered, immutable list of handlers ending in a match-anything handler."""

    def __init__(self, handlers: Sequence[ChangeHandler]):
        """Initialize chain.

        Raises:
            ValueError: Unless exactly one handler has an empty extension and it is last
        """
        handlers = tuple(handlers)
        if not handlers or handlers[-1].extension:
            raise ValueError("Handler chain must end with a match-anything handler")
        if any(not h.extension for h in handlers[:-1]):
            raise ValueError("Only the last handler in the chain may match anything")
        self.handlers = handlers

    @property
    def names(self) -> list[str]:
        return [h.name for h in self.handlers]

    def dispatch(self, object_name: str, kind: ChangeKind) -> ChangeHandler:
        """Route a change to the first handler that claims it.

        Returns:
            The handler whose action returned True.
        """
        for handler in self.handlers:
            if handler.matches(object_name) and handler.action(object_name, kind):
                logger.debug(f"{object_name or '<all>'} handled by {handler.name}")
                return handler

        # The terminal handler's action must always claim the change
        raise RuntimeError(f"Terminal handler '{self.handlers[-1].name}' declined {object_name}")


@dataclass(frozen=True)
class BuildStep:
    """External build tool invocation bound to a source extension."""

    name: str
    extension: str
    command: tuple[str, ...]
    cwd: Path

    def run(self) -> int:
        """Run the tool to completion and return its exit code."""
        logger.info(f"Running {self.name}: {' '.join(self.command)}")
        try:
            completed = subprocess.run(list(self.command), cwd=self.cwd, check=False)
        except FileNotFoundError:
            logger.warning(f"{self.name} executable not found: {self.command[0]}")
            return EXIT_NOT_FOUND
        except OSError as e:
            logger.warning(f"{self.name} could not be started: {e}")
            return EXIT_NOT_EXECUTABLE

        logger.info(f"{self.name} exited with code {completed.returncode}")
        return completed.returncode


def build_step_handler(
    step: BuildStep,
    browser: BrowserController,
    notifier: WebSyncNotifier,
) -> ChangeHandler:
    """Handler that runs a build step, then refreshes the browser regardless of outcome."""

    def action(object_name: str, kind: ChangeKind) -> bool:
        code = step.run()
        if code != 0:
            notifier.alert(f"{step.name} failed with exit code {code}")
        browser.refresh()
        return True

    return ChangeHandler(name=step.name, extension=step.extension, action=action)


def refresh_handler(browser: BrowserController) -> ChangeHandler:
    """Terminal handler: refresh only."""

    def action(object_name: str, kind: ChangeKind) -> bool:
        logger.info("Refreshing browser due to the change notification")
        browser.refresh()
        return True

    return ChangeHandler(name="refresh", extension="", action=action)


def build_handler_chain(
    browser: BrowserController,
    steps: Sequence[BuildStep] = (),
    notifier: WebSyncNotifier | None = None,
) -> HandlerChain:
    """Link the enabled build steps in order, followed by the refresh handler.

    Args:
        browser: Client used by every handler to reload tabs
        steps: Enabled build steps in priority order (language build first, styles second)
        notifier: Receives alerts for failed build steps
    """
    notifier = notifier or NoOpNotifier()
    handlers = [build_step_handler(step, browser, notifier) for step in steps]
    handlers.append(refresh_handler(browser))
    return HandlerChain(handlers)
