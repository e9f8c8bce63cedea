"""websync-core: File watching, change dispatch and browser reload for websync."""

__version__ = "0.1.0"

# Models
from websync_core.browser import BrowserController, normalize_host

# Config
from websync_core.config import WebSyncConfig, load_config
from websync_core.file_watcher import CompositeWatcher
from websync_core.handlers import BuildStep, ChangeHandler, HandlerChain, build_handler_chain
from websync_core.models import (
    ChangeEvent,
    ChangeKind,
    ConfigValidationResult,
    ReloadRequest,
    ReloadResponse,
    TabDescriptor,
)
from websync_core.watchers import WatchBinding

__all__ = [
    "__version__",
    # Models
    "ChangeEvent",
    "ChangeKind",
    "TabDescriptor",
    "ReloadRequest",
    "ReloadResponse",
    "ConfigValidationResult",
    "WatchBinding",
    # Components
    "CompositeWatcher",
    "ChangeHandler",
    "HandlerChain",
    "BuildStep",
    "build_handler_chain",
    "BrowserController",
    "normalize_host",
    # Config
    "WebSyncConfig",
    "load_config",
]
