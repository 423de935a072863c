"""Tests for DevTools target discovery."""

import httpx
import pytest

from browserpilot.browser.discovery import HttpDiscovery
from browserpilot.browser.errors import DiscoveryFailedError, NoTargetsFoundError
from browserpilot.browser.models import CDPTarget


def target_entry(target_type="page", url="https://x", target_id="T1"):
    return {
        "description": "",
        "devtoolsFrontendUrl": f"/devtools/inspector.html?ws=localhost:9222/devtools/page/{target_id}",
        "id": target_id,
        "title": "Title",
        "type": target_type,
        "url": url,
        "webSocketDebuggerUrl": f"ws://localhost:9222/devtools/page/{target_id}",
    }


def discovery_with(handler, host="localhost"):
    """HttpDiscovery whose client is served by an httpx.MockTransport handler."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpDiscovery(host=host, client=client)


class TestCDPTarget:
    """Tests for CDPTarget parsing."""

    def test_from_dict(self):
        target = CDPTarget.from_dict(target_entry())

        assert target.id == "T1"
        assert target.websocket_url == "ws://localhost:9222/devtools/page/T1"
        assert target.is_page is True

    def test_optional_fields_default(self):
        entry = target_entry()
        del entry["title"]
        del entry["url"]

        target = CDPTarget.from_dict(entry)

        assert target.title == ""
        assert target.url == ""

    def test_missing_websocket_url(self):
        entry = target_entry()
        del entry["webSocketDebuggerUrl"]

        with pytest.raises(KeyError):
            CDPTarget.from_dict(entry)

    def test_null_websocket_url(self):
        entry = target_entry()
        entry["webSocketDebuggerUrl"] = None

        with pytest.raises(TypeError):
            CDPTarget.from_dict(entry)

    def test_to_dict_round_trip(self):
        target = CDPTarget.from_dict(target_entry())
        assert CDPTarget.from_dict(target.to_dict()) == target


class TestHttpDiscovery:
    """Tests for HttpDiscovery against a mocked /json endpoint."""

    def test_discovery_url(self):
        assert HttpDiscovery().discovery_url(9222) == "http://localhost:9222/json"
        assert HttpDiscovery(host="127.0.0.1").discovery_url(9333) == "http://127.0.0.1:9333/json"

    @pytest.mark.asyncio
    async def test_list_targets_queries_port(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[target_entry(), target_entry("service_worker", target_id="T2")])

        targets = await discovery_with(handler).list_targets(9333)

        assert [t.id for t in targets] == ["T1", "T2"]
        assert len(requests) == 1
        assert requests[0].method == "GET"
        assert str(requests[0].url) == "http://localhost:9333/json"

    @pytest.mark.asyncio
    async def test_find_page_target_skips_non_pages(self):
        """Test the first page target is chosen over an earlier iframe."""

        def handler(request):
            return httpx.Response(
                200,
                json=[target_entry("iframe", url="https://frame", target_id="F"), target_entry("page", url="https://x")],
            )

        target = await discovery_with(handler).find_page_target(9222)

        assert target.type == "page"
        assert target.url == "https://x"

    @pytest.mark.asyncio
    async def test_find_page_target_empty_list(self):
        discovery = discovery_with(lambda request: httpx.Response(200, json=[]))

        with pytest.raises(NoTargetsFoundError) as exc_info:
            await discovery.find_page_target(9222)

        assert "No browser tabs" in str(exc_info.value)
        assert "Open a tab" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_find_page_target_no_pages(self):
        discovery = discovery_with(lambda request: httpx.Response(200, json=[target_entry("background_page")]))

        with pytest.raises(NoTargetsFoundError):
            await discovery.find_page_target(9222)

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery_with(handler).list_targets(9222)

        assert "Connection refused" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        discovery = discovery_with(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery.list_targets(9222)

        assert "HTTP 500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        discovery = discovery_with(lambda request: httpx.Response(200, text="<html>not json</html>"))

        with pytest.raises(DiscoveryFailedError):
            await discovery.list_targets(9222)

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        """Test a body that is not valid UTF-8 is reported as a discovery failure."""
        discovery = discovery_with(lambda request: httpx.Response(200, content=b"\xff\xfe[{\"id\":1}]\xff"))

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery.list_targets(9222)

        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_non_array_body(self):
        discovery = discovery_with(lambda request: httpx.Response(200, json={"targets": []}))

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery.list_targets(9222)

        assert "expected a list" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_entry_missing_required_field(self):
        entry = target_entry()
        del entry["type"]
        discovery = discovery_with(lambda request: httpx.Response(200, json=[entry]))

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery.list_targets(9222)

        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_entry_not_an_object(self):
        discovery = discovery_with(lambda request: httpx.Response(200, json=["page"]))

        with pytest.raises(DiscoveryFailedError):
            await discovery.list_targets(9222)

    @pytest.mark.asyncio
    async def test_entry_with_null_websocket_url(self):
        entry = target_entry()
        entry["webSocketDebuggerUrl"] = None
        discovery = discovery_with(lambda request: httpx.Response(200, json=[entry]))

        with pytest.raises(DiscoveryFailedError) as exc_info:
            await discovery.list_targets(9222)

        assert "webSocketDebuggerUrl" in str(exc_info.value)
