"""Chrome DevTools Protocol backend.

Drives a Chromium-family browser over a single websocket to one page target.

Every outgoing command gets a fresh integer id; a single background reader
task consumes the transport and resolves the waiting caller whose id matches.
Many commands may be in flight at once and responses may arrive in any order.

A pending command is released by exactly one of:
- its response (matched by id in the reader)
- its timeout (a loop timer)
- a connection-loss sweep (reader failure or disconnect())

Whichever removes the id from the pending map first wins; the others find
nothing and do nothing.

Usage:
    backend = CDPBackend(WebSocketTransport(), HttpDiscovery())
    await backend.connect(9222)
    frame_id = await backend.navigate("https://example.com")
    title = await backend.evaluate_js("document.title")
    await backend.disconnect()
"""

import asyncio
import json
import threading
from typing import Any, Optional

import structlog

from browserpilot.browser.backend import BrowserBackend
from browserpilot.browser.discovery import CDPDiscovery
from browserpilot.browser.errors import (
    CDPError,
    CommandTimeoutError,
    ConnectionClosedError,
    ConnectionFailedError,
    EvaluationError,
    InvalidResponseError,
    NavigationFailedError,
    NotConnectedError,
)
from browserpilot.browser.models import CDPCommand
from browserpilot.browser.transport import CDPTransport
from browserpilot.config import DEFAULT_CDP_PORT

logger = structlog.get_logger(__name__)

# Domains enabled right after connecting
BOOTSTRAP_METHODS = ("Runtime.enable", "Page.enable")


def render_remote_value(remote: Any) -> str:
    """Render a Runtime.RemoteObject (returnByValue) as a string.

    Strings pass through, booleans become "true"/"false", integral numbers
    lose their fractional part ("42" not "42.0"), null/absent becomes "null".
    """
    if not isinstance(remote, dict):
        return "null"

    if "value" not in remote:
        # NaN, Infinity, -0 and bigints have no JSON form
        return str(remote.get("unserializableValue", "null"))

    value = remote["value"]
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _describe_exception(details: Any) -> str:
    if isinstance(details, dict):
        exception = details.get("exception")
        if isinstance(exception, dict) and isinstance(exception.get("description"), str):
            return exception["description"]
        if isinstance(details.get("text"), str):
            return details["text"]
    return str(details)


def _describe_error(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message", "")
        code = error.get("code")
        data = error.get("data")
        parts = [f"{message} ({code})" if code is not None else str(message)]
        if data:
            parts.append(str(data))
        return ": ".join(parts)
    return str(error)


def js_string(value: str) -> str:
    """Quote a Python string as a JavaScript string literal."""
    return json.dumps(value)


class CDPBackend(BrowserBackend):
    """RPC client for the DevTools protocol over one CDPTransport."""

    def __init__(
        self,
        transport: CDPTransport,
        discovery: CDPDiscovery,
        command_timeout: float = 10.0,
    ):
        """
        Args:
            transport: Channel to the page target (owned by this client)
            discovery: Target lookup used by connect()
            command_timeout: Default per-command timeout in seconds
        """
        self.transport = transport
        self.discovery = discovery
        self.command_timeout = command_timeout

        # Guards _next_id, _pending, _connected and _reader_task
        self._lock = threading.Lock()
        self._next_id = 1
        self._pending: dict[int, asyncio.Future] = {}
        self._connected = False
        self._reader_task: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()

        self.log = logger.bind(component="cdp_backend")

    # Connection state

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    async def connect(self, port: int = DEFAULT_CDP_PORT) -> None:
        """Discover a page target on the port, open the transport and start the reader.

        Concurrent callers are serialized; whoever arrives second finds the
        connection already open and returns.

        Raises:
            DiscoveryFailedError, NoTargetsFoundError: from discovery, unchanged
            ConnectionFailedError: if the transport could not be opened
        """
        async with self._connect_lock:
            if self.is_connected:
                self.log.debug("CDP backend is already connected")
                return

            with self._lock:
                stale_reader = self._reader_task
            if stale_reader is not None:
                # Previous connection died under us; release its transport first
                await self.disconnect()

            target = await self.discovery.find_page_target(port)

            try:
                await self.transport.connect(target.websocket_url)
            except CDPError:
                raise
            except Exception as e:
                raise ConnectionFailedError(str(e)) from e

            with self._lock:
                self._connected = True
                self._reader_task = asyncio.create_task(self._run_reader(), name="cdp-reader")

            for method in BOOTSTRAP_METHODS:
                try:
                    await self.send_command(method)
                except CDPError as e:
                    self.log.warning("CDP bootstrap command failed", method=method, error=str(e))

        self.log.info("Connected to CDP target", title=target.title, url=target.url, port=port)

    async def disconnect(self) -> None:
        """Stop the reader, fail every pending command and close the transport.

        A no-op when nothing is connected.
        """
        with self._lock:
            if not self._connected and self._reader_task is None:
                return
            self._connected = False
            pending = self._pending
            self._pending = {}
            reader = self._reader_task
            self._reader_task = None

        if reader is not None and not reader.done():
            reader.cancel()

        self._fail_pending(pending)

        if reader is not None and reader is not asyncio.current_task():
            await asyncio.wait([reader])

        await self.transport.disconnect()
        self.log.info("Disconnected from CDP", failed_commands=len(pending))

    # Reader

    async def _run_reader(self) -> None:
        while True:
            try:
                raw = await self.transport.receive()
            except Exception as e:
                self.log.error("CDP reader stopped", error=str(e))
                self._drop_connection()
                return
            self._handle_message(raw)

    def _drop_connection(self) -> None:
        with self._lock:
            self._connected = False
            pending = self._pending
            self._pending = {}
        self._fail_pending(pending)

    @staticmethod
    def _fail_pending(pending: dict[int, asyncio.Future]) -> None:
        for future in pending.values():
            if not future.done():
                future.set_exception(ConnectionClosedError())

    def _take_pending(self, command_id: int) -> Optional[asyncio.Future]:
        with self._lock:
            return self._pending.pop(command_id, None)

    def _handle_message(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            self.log.debug("Discarding undecodable CDP message", size=len(raw or ""))
            return

        if not isinstance(message, dict):
            return

        command_id = message.get("id")
        if command_id is None:
            # Protocol events (Page.frameNavigated etc.) are not consumed
            self.log.debug("Discarding CDP event", method=message.get("method"))
            return
        if not isinstance(command_id, int) or isinstance(command_id, bool):
            return

        future = self._take_pending(command_id)
        if future is None:
            self.log.debug("Ignoring response for unknown or expired command", id=command_id)
            return
        if future.done():
            return

        if "error" in message:
            future.set_exception(InvalidResponseError(f"CDP error: {_describe_error(message['error'])}"))
            return

        result = message.get("result", {})
        if isinstance(result, dict) and "exceptionDetails" in result:
            future.set_exception(EvaluationError(_describe_exception(result["exceptionDetails"])))
            return

        future.set_result(result)

    def _expire(self, command_id: int, method: str, timeout: float) -> None:
        future = self._take_pending(command_id)
        if future is None or future.done():
            return
        self.log.warning("CDP command timed out", id=command_id, method=method, timeout=timeout)
        future.set_exception(CommandTimeoutError(method, timeout))

    # Command primitive

    async def send_command(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send one protocol command and wait for its result.

        Args:
            method: Protocol method, e.g. "Page.navigate"
            params: Method parameters
            timeout: Seconds to wait (defaults to command_timeout)

        Returns:
            The response's "result" payload

        Raises:
            NotConnectedError: if not connected
            CommandTimeoutError: if no response arrived in time
            InvalidResponseError: if the browser answered with an error
            EvaluationError: if the result carries exceptionDetails
            ConnectionClosedError: if the connection went away while waiting
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        with self._lock:
            if not self._connected:
                raise NotConnectedError()
            command_id = self._next_id
            self._next_id += 1
            self._pending[command_id] = future

        command = CDPCommand(id=command_id, method=method, params=params or {})
        timeout = self.command_timeout if timeout is None else timeout
        timer = loop.call_later(timeout, self._expire, command_id, method, timeout)

        try:
            await self.transport.send(command.to_json())
            return await future
        finally:
            timer.cancel()
            self._take_pending(command_id)

    # High-level commands

    async def navigate(self, url: str) -> str:
        """Navigate the page and return the frame id from Page.navigate."""
        result = await self.send_command("Page.navigate", {"url": url})
        if not isinstance(result, dict):
            raise InvalidResponseError("Page.navigate returned non-object")
        if result.get("errorText"):
            raise NavigationFailedError(f"{url}: {result['errorText']}")

        frame_id = result.get("frameId")
        if not isinstance(frame_id, str):
            raise InvalidResponseError("Page.navigate missing frameId in response")
        return frame_id

    async def evaluate_js(self, expression: str) -> str:
        result = await self.send_command(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True},
        )
        if not isinstance(result, dict):
            raise InvalidResponseError("Runtime.evaluate returned non-object")
        return render_remote_value(result.get("result"))

    async def find_element(self, selector: str) -> bool:
        result = await self.evaluate_js(f"document.querySelector({js_string(selector)}) !== null")
        return result == "true"

    async def click_element(self, selector: str) -> None:
        quoted = js_string(selector)
        await self.evaluate_js(
            "(function() {\n"
            f"  var el = document.querySelector({quoted});\n"
            f"  if (!el) throw new Error('Element not found: ' + {quoted});\n"
            "  el.click();\n"
            "})()"
        )

    async def type_in_element(self, selector: str, text: str) -> None:
        quoted = js_string(selector)
        await self.evaluate_js(
            "(function() {\n"
            f"  var el = document.querySelector({quoted});\n"
            f"  if (!el) throw new Error('Element not found: ' + {quoted});\n"
            "  el.focus();\n"
            f"  el.value = {js_string(text)};\n"
            "  el.dispatchEvent(new Event('input', { bubbles: true }));\n"
            "  el.dispatchEvent(new Event('change', { bubbles: true }));\n"
            "})()"
        )

    async def get_text(self) -> str:
        return await self.evaluate_js("document.body.innerText")

    async def get_url(self) -> str:
        return await self.evaluate_js("window.location.href")
