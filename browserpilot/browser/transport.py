"""
DevTools transport.

A duplex message channel to one debugging target. The RPC client owns one
transport: a single reader task calls receive() in a loop while any number
of callers may send() concurrently.
"""

import asyncio
from abc import ABC, abstractmethod

import structlog
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from browserpilot.browser.errors import ConnectionClosedError, ConnectionFailedError, NotConnectedError

logger = structlog.get_logger(__name__)


class CDPTransport(ABC):
    """Abstract duplex channel used by the CDP client."""

    @abstractmethod
    async def connect(self, url: str) -> None:
        """Open the channel to a target's websocket URL."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """Send one complete message."""

    @abstractmethod
    async def receive(self) -> str:
        """Wait for the next message.

        Raises:
            ConnectionClosedError: if the peer closed the channel
            NotConnectedError: if the channel is not open
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the channel. Safe to call when already closed."""


class WebSocketTransport(CDPTransport):
    """CDPTransport over a websockets client connection."""

    def __init__(self, open_timeout: float = 10.0):
        self.open_timeout = open_timeout
        self._ws = None
        self._send_lock = asyncio.Lock()
        self.log = logger.bind(component="cdp_transport")

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self, url: str) -> None:
        try:
            # DevTools payloads (DOM dumps, screenshots) exceed the default 1 MiB frame limit
            self._ws = await websockets.connect(
                url,
                max_size=None,
                ping_interval=None,
                open_timeout=self.open_timeout,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise ConnectionFailedError(f"{url}: {e}") from e

        self.log.info("WebSocket opened", url=url[:80])

    def _require_ws(self):
        ws = self._ws
        if ws is None:
            raise NotConnectedError()
        return ws

    async def send(self, message: str) -> None:
        ws = self._require_ws()
        async with self._send_lock:
            try:
                await ws.send(message)
            except ConnectionClosed as e:
                raise ConnectionClosedError() from e

    async def receive(self) -> str:
        ws = self._require_ws()
        try:
            message = await ws.recv()
        except ConnectionClosed as e:
            raise ConnectionClosedError() from e

        if isinstance(message, bytes):
            return message.decode("utf-8")
        return message

    async def disconnect(self) -> None:
        ws = self._ws
        self._ws = None
        if ws is None:
            return

        try:
            await ws.close()
        except (OSError, WebSocketException) as e:
            self.log.debug("WebSocket close error", error=str(e))
        self.log.info("WebSocket closed")
