"""Composite file watcher implementation using watchdog."""

import logging
import threading
from collections.abc import Iterable

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer

from websync_core.models import ChangeEvent
from websync_core.watchers import ChangeCallback, ChangeSourceWatcher, WatchBinding

logger = logging.getLogger(__name__)


class _BindingHandler(PatternMatchingEventHandler):
    """Forwards matching events of one binding to the composite watcher."""

    def __init__(self, binding: WatchBinding, watcher: "CompositeWatcher"):
        """Initialize handler.

        Args:
            binding: Binding this handler filters for
            watcher: Owning watcher that holds the shared gate
        """
        super().__init__(
            patterns=list(binding.patterns),
            ignore_directories=True,
            case_sensitive=False,
        )
        self.binding = binding
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Turn created/modified/deleted/moved events into ChangeEvents."""
        if ChangeEvent.kind_for(event) is None:
            return
        self.watcher.notify(ChangeEvent.from_fs_event(event, self.binding.root))


class CompositeWatcher(ChangeSourceWatcher):
    """Aggregates one watchdog watch per binding behind a single callback.

    All bindings share one non-blocking gate: while the callback is running,
    any other notification (from any binding or observer thread) is dropped,
    not queued.

    Usage:
        watcher = CompositeWatcher(on_change)
        watcher.configure([WatchBinding(Path("js"), ("*.js", "*.ts"))])
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, callback: ChangeCallback):
        """Initialize watcher.

        Args:
            callback: Called as callback(name, kind) for every accepted notification
        """
        self.callback = callback
        self.bindings: list[WatchBinding] = []
        self.accepted = 0
        self.dropped = 0
        self._gate = threading.Lock()
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def configure(self, bindings: Iterable[WatchBinding]) -> None:
        """Validate and store bindings.

        Args:
            bindings: One or more watch bindings

        Raises:
            ValueError: If no bindings were given
            FileNotFoundError: If a binding root does not exist
            RuntimeError: If the watcher is already running
        """
        if self.is_running:
            raise RuntimeError("Cannot reconfigure a running watcher; call stop() first")

        bindings = list(bindings)
        if not bindings:
            raise ValueError("At least one watch binding is required")

        for binding in bindings:
            if not binding.root.is_dir():
                raise FileNotFoundError(f"Watch directory does not exist: {binding.root}")

        self.bindings = bindings

    def start(self) -> None:
        """Start one observer with a recursive watch per binding."""
        if self.is_running:
            logger.debug("Watcher already running")
            return
        if not self.bindings:
            raise RuntimeError("No watch bindings configured; call configure() first")

        observer = Observer()
        for binding in self.bindings:
            observer.schedule(_BindingHandler(binding, self), str(binding.root), recursive=True)
            logger.info(f"Watching {binding.root} ({binding.source}) for {', '.join(binding.patterns)}")

        observer.start()
        self._observer = observer
        logger.info(f"Started {len(self.bindings)} file watcher(s)")

    def stop(self) -> None:
        """Stop all watches. Safe to call repeatedly or before start()."""
        observer, self._observer = self._observer, None
        if observer is None:
            return

        observer.stop()
        if observer.is_alive():
            observer.join(timeout=2.0)
        logger.info("Stopped file watchers")

    def notify(self, event: ChangeEvent) -> None:
        """Deliver one notification through the shared gate.

        Drops the notification if another one is still being handled.
        """
        if not self._gate.acquire(blocking=False):
            self.dropped += 1
            logger.debug(f"Dropped {event.kind.value} of {event.name}: handling in progress")
            return

        try:
            self.accepted += 1
            self.callback(event.name, event.kind)
        except Exception:
            logger.exception(f"Change handling failed for {event.name}")
        finally:
            self._gate.release()

    def __enter__(self) -> "CompositeWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
