"""Watch session controller. Primary embed point."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from websync_core.browser import BrowserController, normalize_host
from websync_core.config import WebSyncConfig
from websync_core.file_watcher import CompositeWatcher
from websync_core.handlers import HandlerChain, build_handler_chain
from websync_core.models import ChangeEvent, ChangeKind, ConfigValidationResult
from websync_core.notifier import NoOpNotifier, WebSyncNotifier
from websync_core.watchers import WatchBinding

logger = logging.getLogger(__name__)


class WebSyncController:
    """Wires watcher, handler chain and browser client for one project.

    The controller owns the idle window: a notification that arrives within
    idle_ms of the previously accepted one is skipped. The watcher below it
    only guarantees that one notification is handled at a time.

    Stable methods: start(), stop(), on_change(), force_refresh(), compile(), validate().
    """

    def __init__(
        self,
        config: WebSyncConfig,
        browser: BrowserController | None = None,
        notifier: WebSyncNotifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize controller.

        Args:
            config: Session settings
            browser: Browser client (defaults to one built from config)
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            clock: Monotonic time source in seconds

        Raises:
            FileNotFoundError: If the project directory does not exist
        """
        if not Path(config.project_dir).is_dir():
            raise FileNotFoundError(f"Specified project directory does not exist: {config.project_dir}")

        self.config = config
        self.notifier = notifier or NoOpNotifier()
        self.browser = browser or BrowserController(
            host=normalize_host(config.domain),
            debug_port=config.debug_port,
            timeout=config.timeout,
        )
        self.chain: HandlerChain = build_handler_chain(self.browser, config.build_steps(), self.notifier)
        self.watcher = CompositeWatcher(self.on_change)
        self._clock = clock
        self._last_accepted: float | None = None
        self.last_event: ChangeEvent | None = None

    @property
    def idle_seconds(self) -> float:
        return self.config.idle_ms / 1000.0

    def start(self) -> list[WatchBinding]:
        """Resolve bindings and start watching.

        Returns:
            The bindings being watched

        Raises:
            ValueError: If no watchable resource was found
            FileNotFoundError: If a configured watch directory does not exist
        """
        bindings = self.config.watch_bindings()
        self.watcher.configure(bindings)
        self.watcher.start()
        self.notifier.info(f"Started watching for changes in {self.config.project_dir}")
        return bindings

    def stop(self) -> None:
        """Stop watching. Idempotent."""
        if self.watcher.is_running:
            self.watcher.stop()
            self.notifier.info("Stopped watching")

    def on_change(self, object_name: str, kind: ChangeKind) -> bool:
        """Handle a notification unless it falls inside the idle window.

        Returns:
            True if the notification was dispatched
        """
        now = self._clock()
        logger.info(f"Notification of type {kind.value} received for {object_name or '<all>'}")

        if self._last_accepted is not None and now - self._last_accepted <= self.idle_seconds:
            logger.debug("Skipped notification due to frequency rules")
            return False

        self._last_accepted = now
        self.last_event = ChangeEvent(name=object_name, kind=kind, timestamp=now)
        self.chain.dispatch(object_name, kind)
        return True

    def force_refresh(self) -> None:
        """Dispatch a bulk notification, through the watcher gate when running."""
        event = ChangeEvent(name="", kind=ChangeKind.BULK, timestamp=self._clock())
        if self.watcher.is_running:
            self.watcher.notify(event)
        else:
            self.on_change(event.name, event.kind)

    def compile(self) -> None:
        """Run every enabled build step, then refresh once."""
        for step in self.config.build_steps():
            code = step.run()
            if code != 0:
                self.notifier.alert(f"{step.name} failed with exit code {code}")
        self.browser.refresh()

    def validate(self) -> ConfigValidationResult:
        """Validate configuration and return structured results."""
        result = ConfigValidationResult(handlers_enabled=self.chain.names)

        try:
            bindings = self.config.watch_bindings()
        except ValueError as e:
            result.warnings.append(str(e))
            return result

        for binding in bindings:
            if binding.root.is_dir():
                result.bindings_found += 1
            else:
                result.warnings.append(f"Watch directory does not exist: {binding.root}")

        if self.config.idle_ms == 0:
            result.warnings.append("idle_ms is 0: every notification will trigger a refresh")

        return result
