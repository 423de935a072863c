"""Tests for the websocket transport."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosedError as WSConnectionClosedError
from websockets.exceptions import ConnectionClosedOK, InvalidURI

from browserpilot.browser.errors import ConnectionClosedError, ConnectionFailedError, NotConnectedError
from browserpilot.browser.transport import WebSocketTransport

WS_URL = "ws://localhost:9222/devtools/page/ABC"


def mock_socket():
    ws = AsyncMock()
    ws.send = AsyncMock()
    ws.recv = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestWebSocketTransport:
    """Tests for WebSocketTransport."""

    @pytest.mark.asyncio
    async def test_connect_passes_options(self):
        ws = mock_socket()
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)) as connect:
            transport = WebSocketTransport(open_timeout=3.0)
            await transport.connect(WS_URL)

        connect.assert_awaited_once_with(WS_URL, max_size=None, ping_interval=None, open_timeout=3.0)
        assert transport.connected is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [OSError("Connection refused"), asyncio.TimeoutError(), InvalidURI("nope", "bad uri")],
    )
    async def test_connect_failure(self, error):
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(side_effect=error)):
            transport = WebSocketTransport()
            with pytest.raises(ConnectionFailedError) as exc_info:
                await transport.connect(WS_URL)

        assert "--remote-debugging-port" in str(exc_info.value)
        assert exc_info.value.__cause__ is error
        assert transport.connected is False

    @pytest.mark.asyncio
    async def test_send_and_receive(self):
        ws = mock_socket()
        ws.recv.side_effect = ['{"id": 1, "result": {}}', b'{"id": 2, "result": {}}']
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)):
            transport = WebSocketTransport()
            await transport.connect(WS_URL)

        await transport.send('{"id": 1, "method": "Page.enable", "params": {}}')

        ws.send.assert_awaited_once_with('{"id": 1, "method": "Page.enable", "params": {}}')
        assert await transport.receive() == '{"id": 1, "result": {}}'
        # Binary frames are decoded
        assert await transport.receive() == '{"id": 2, "result": {}}'

    @pytest.mark.asyncio
    async def test_calls_before_connect(self):
        transport = WebSocketTransport()

        with pytest.raises(NotConnectedError):
            await transport.send("{}")
        with pytest.raises(NotConnectedError):
            await transport.receive()

    @pytest.mark.asyncio
    async def test_peer_close_on_receive(self):
        ws = mock_socket()
        ws.recv.side_effect = ConnectionClosedOK(None, None)
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)):
            transport = WebSocketTransport()
            await transport.connect(WS_URL)

        with pytest.raises(ConnectionClosedError):
            await transport.receive()

    @pytest.mark.asyncio
    async def test_peer_close_on_send(self):
        ws = mock_socket()
        ws.send.side_effect = WSConnectionClosedError(None, None)
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)):
            transport = WebSocketTransport()
            await transport.connect(WS_URL)

        with pytest.raises(ConnectionClosedError):
            await transport.send("{}")

    @pytest.mark.asyncio
    async def test_disconnect(self):
        ws = mock_socket()
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)):
            transport = WebSocketTransport()
            await transport.connect(WS_URL)

        await transport.disconnect()
        await transport.disconnect()

        ws.close.assert_awaited_once()
        assert transport.connected is False
        with pytest.raises(NotConnectedError):
            await transport.send("{}")

    @pytest.mark.asyncio
    async def test_disconnect_tolerates_close_error(self):
        ws = mock_socket()
        ws.close.side_effect = OSError("broken pipe")
        with patch("browserpilot.browser.transport.websockets.connect", new=AsyncMock(return_value=ws)):
            transport = WebSocketTransport()
            await transport.connect(WS_URL)

        await transport.disconnect()

        assert transport.connected is False
