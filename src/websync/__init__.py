"""websync: Watch a web project, run build steps and reload browser tabs."""

__version__ = "0.1.0"

# Public API
from websync.controller import WebSyncController

__all__ = [
    "__version__",
    # Primary components
    "WebSyncController",
]
