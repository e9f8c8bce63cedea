"""Browser control through the remote-debugging protocol.

Discovery is a plain HTTP GET against the browser's introspection endpoint.
Each matching tab is then reloaded over its own short-lived WebSocket with a
single Page.reload request/response exchange. Nothing here retries: a tab
that fails is skipped until the next change triggers another cycle.
"""

import json
import logging

import requests
from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from websync_core.models import ReloadRequest, ReloadResponse, TabDescriptor

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost"
DEFAULT_DEBUG_PORT = 9222
DEFAULT_TIMEOUT = 5.0


def normalize_host(domain: str) -> str:
    """Prefix http:// unless the domain already carries a scheme.

    >>> normalize_host("localhost")
    'http://localhost'
    """
    if not domain.startswith("http"):
        return "http://" + domain
    return domain


class BrowserController:
    """Reloads browser tabs whose URL starts with a target host."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        debug_port: int = DEFAULT_DEBUG_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize controller.

        Args:
            host: Scheme + host prefix of the pages to reload (literal prefix match)
            debug_port: Port the browser was started with (--remote-debugging-port)
            timeout: Seconds allowed for discovery and for each WebSocket step
        """
        self.host = host
        self.debug_port = debug_port
        self.timeout = timeout

    @property
    def discovery_url(self) -> str:
        return f"http://localhost:{self.debug_port}/json"

    def discover_tabs(self) -> list[TabDescriptor]:
        """Fetch the current set of open tabs.

        Raises:
            requests.RequestException: If the endpoint is unreachable or errors
            ValueError: If the body is not a JSON array
        """
        response = requests.get(self.discovery_url, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array from {self.discovery_url}")

        return [TabDescriptor.from_json(item) for item in data if isinstance(item, dict)]

    def matching_tabs(self, tabs: list[TabDescriptor]) -> list[TabDescriptor]:
        """Select tabs showing a page from the target host that can be controlled."""
        matches = []
        for tab in tabs:
            if not tab.url or not tab.url.startswith(self.host):
                continue
            if not tab.websocket_debugger_url:
                logger.debug(f"Skipping tab without debugger url: {tab.title} ({tab.url})")
                continue
            logger.info(f"Found tab to reload: {tab.title} ({tab.url})")
            matches.append(tab)
        return matches

    def reload_tab(self, tab: TabDescriptor) -> ReloadResponse:
        """Send one Page.reload request to a tab and wait for its response.

        Raises:
            OSError: On connection failures
            TimeoutError: If no response arrives in time
            WebSocketException: On protocol-level WebSocket failures
            ValueError: If the response cannot be decoded
        """
        logger.debug(f"Connecting to debug tools on {tab.websocket_debugger_url}")
        with connect(
            tab.websocket_debugger_url,
            open_timeout=self.timeout,
            close_timeout=self.timeout,
        ) as connection:
            connection.send(ReloadRequest().to_json())
            raw = connection.recv(timeout=self.timeout)

        return ReloadResponse.from_json(json.loads(raw))

    def refresh(self) -> None:
        """Reload every matching tab. Never raises for connectivity problems."""
        try:
            tabs = self.discover_tabs()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Could not connect to the browser at {self.discovery_url}: {e}")
            return

        targets = self.matching_tabs(tabs)
        if not targets:
            logger.info(f"No open tabs match {self.host}")
            return

        for tab in targets:
            try:
                response = self.reload_tab(tab)
            except (OSError, TimeoutError, WebSocketException, ValueError, TypeError) as e:
                logger.warning(f"Failed to send reload request to {tab.url}: {e}")
                continue

            if response.error is not None:
                logger.warning(
                    f"Browser returned an error for reload of {tab.url}: "
                    f"{response.error.message} (code {response.error.code})"
                )
            else:
                logger.info(f"Reloaded {tab.url}")
