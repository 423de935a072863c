"""Shared fixtures for browser control tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from browserpilot.browser.backend import BrowserBackend
from browserpilot.browser.cdp_backend import CDPBackend
from browserpilot.browser.models import BrowserInfo
from tests.fakes import FakeDiscovery, FakeTransport, make_target


@pytest.fixture
def page_target():
    """A single page target."""
    return make_target()


@pytest.fixture
def fake_transport():
    """Transport that auto-answers bootstrap commands."""
    return FakeTransport()


@pytest.fixture
def fake_discovery(page_target):
    """Discovery advertising one page target."""
    return FakeDiscovery([page_target])


@pytest.fixture
def cdp_backend(fake_transport, fake_discovery):
    """Unconnected CDP backend over the fakes, with a short command timeout."""
    return CDPBackend(fake_transport, fake_discovery, command_timeout=1.0)


@pytest.fixture
def mock_backend():
    """BrowserBackend with every operation mocked."""
    backend = MagicMock(spec=BrowserBackend)
    backend.navigate = AsyncMock(return_value=None)
    backend.get_url = AsyncMock(return_value="https://example.com/")
    backend.get_text = AsyncMock(return_value="Example Domain")
    backend.find_element = AsyncMock(return_value=True)
    backend.click_element = AsyncMock(return_value=None)
    backend.type_in_element = AsyncMock(return_value=None)
    backend.evaluate_js = AsyncMock(return_value="true")
    return backend


@pytest.fixture
def chrome_info():
    return BrowserInfo(name="Chrome", bundle_id="com.google.Chrome", pid=4242)


@pytest.fixture
def safari_info():
    return BrowserInfo(name="Safari", bundle_id="com.apple.Safari", pid=1717)
