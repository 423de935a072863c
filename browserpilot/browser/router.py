"""Routes browser commands to the right backend for the frontmost browser.

- Safari → AppleScriptBackend (no connection attempt)
- Chromium (Chrome, Arc, Edge, Brave, ...) → CDPBackend, connecting on first use
  and reconnecting after a drop; if the debug port is unreachable, an
  AppleScriptBackend speaking to that application by name
- Firefox / unknown → UnsupportedBrowserError
- Nothing frontmost → NoBrowserDetectedError

Detection and connection state are re-evaluated on every call, so switching
browsers between calls is picked up by the next call.
"""

import asyncio
from collections.abc import Callable
from typing import Optional, Protocol

import structlog

from browserpilot.browser.applescript import AppleScriptBackend, AppleScriptDialect, run_osascript
from browserpilot.browser.backend import BrowserBackend
from browserpilot.browser.cdp_backend import CDPBackend
from browserpilot.browser.detector import BrowserDetector, system_events_frontmost_app
from browserpilot.browser.discovery import HttpDiscovery
from browserpilot.browser.errors import CDPError, NoBrowserDetectedError, UnsupportedBrowserError
from browserpilot.browser.models import BrowserInfo, BrowserType
from browserpilot.browser.transport import WebSocketTransport
from browserpilot.config import DEFAULT_CDP_PORT, BrowserSettings, get_settings

logger = structlog.get_logger(__name__)

FallbackFactory = Callable[[str], BrowserBackend]


class BrowserDetecting(Protocol):
    """What the router needs from a detector."""

    def detect_frontmost_browser(self) -> Optional[BrowserInfo]: ...

    def classify_browser(self, bundle_id: str) -> BrowserType: ...


def chrome_applescript_fallback(app_name: str) -> BrowserBackend:
    """AppleScript backend that addresses a Chromium browser by its display name."""
    return AppleScriptBackend(AppleScriptDialect.chrome(app_name))


class BrowserRouter(BrowserBackend):
    """BrowserBackend that picks a strategy per call."""

    def __init__(
        self,
        detector: BrowserDetecting,
        cdp_backend: CDPBackend,
        applescript_backend: AppleScriptBackend,
        cdp_port: int = DEFAULT_CDP_PORT,
        fallback_factory: Optional[FallbackFactory] = None,
    ):
        """
        Args:
            detector: Frontmost browser detector
            cdp_backend: Shared DevTools client; its open connection is reused across calls
            applescript_backend: Safari backend
            cdp_port: Remote debugging port to connect to
            fallback_factory: Builds the backend used when CDP cannot connect,
                given the browser's display name
        """
        self.detector = detector
        self.cdp_backend = cdp_backend
        self.applescript_backend = applescript_backend
        self.cdp_port = cdp_port
        self.fallback_factory = fallback_factory or chrome_applescript_fallback
        self.log = logger.bind(component="browser_router")

    async def resolve_backend(self) -> BrowserBackend:
        """Detect the frontmost browser and return the backend that should serve it.

        Raises:
            NoBrowserDetectedError: if no browser is frontmost
            UnsupportedBrowserError: for Firefox and unrecognised applications
        """
        info = await asyncio.to_thread(self.detector.detect_frontmost_browser)
        if info is None:
            raise NoBrowserDetectedError()

        browser_type = self.detector.classify_browser(info.bundle_id)

        if browser_type == BrowserType.SAFARI:
            return self.applescript_backend

        if browser_type == BrowserType.CHROMIUM:
            if self.cdp_backend.is_connected:
                return self.cdp_backend
            try:
                await self.cdp_backend.connect(self.cdp_port)
            except CDPError as e:
                self.log.warning(
                    "CDP connect failed, falling back to AppleScript",
                    browser=info.name,
                    port=self.cdp_port,
                    error=str(e),
                )
                return self.fallback_factory(info.name)
            return self.cdp_backend

        # Firefox and anything unrecognised
        raise UnsupportedBrowserError(info.name)

    # BrowserBackend interface implementation

    async def navigate(self, url: str) -> Optional[str]:
        backend = await self.resolve_backend()
        self.log.info("Routing navigate", url=url, backend=type(backend).__name__)
        return await backend.navigate(url)

    async def get_url(self) -> str:
        backend = await self.resolve_backend()
        return await backend.get_url()

    async def get_text(self) -> str:
        backend = await self.resolve_backend()
        return await backend.get_text()

    async def find_element(self, selector: str) -> bool:
        backend = await self.resolve_backend()
        return await backend.find_element(selector)

    async def click_element(self, selector: str) -> None:
        backend = await self.resolve_backend()
        await backend.click_element(selector)

    async def type_in_element(self, selector: str, text: str) -> None:
        backend = await self.resolve_backend()
        await backend.type_in_element(selector, text)

    async def evaluate_js(self, expression: str) -> str:
        backend = await self.resolve_backend()
        return await backend.evaluate_js(expression)

    async def close(self) -> None:
        """Drop the DevTools connection, if any."""
        await self.cdp_backend.disconnect()


def create_browser_router(settings: Optional[BrowserSettings] = None) -> BrowserRouter:
    """Wire the production router from settings.

    Example:
        router = create_browser_router()
        await router.navigate("https://example.com")
        print(await router.get_text())
        await router.close()
    """
    settings = settings or get_settings()

    async def osascript_runner(script: str) -> str:
        return await run_osascript(
            script,
            osascript_path=settings.osascript_path,
            timeout=settings.script_timeout_seconds,
        )

    cdp_backend = CDPBackend(
        transport=WebSocketTransport(),
        discovery=HttpDiscovery(host=settings.cdp_host, timeout=settings.discovery_timeout_seconds),
        command_timeout=settings.command_timeout_seconds,
    )

    return BrowserRouter(
        detector=BrowserDetector(lambda: system_events_frontmost_app(settings.osascript_path)),
        cdp_backend=cdp_backend,
        applescript_backend=AppleScriptBackend(AppleScriptDialect.safari(), osascript_runner),
        cdp_port=settings.cdp_port,
        fallback_factory=lambda app_name: AppleScriptBackend(AppleScriptDialect.chrome(app_name), osascript_runner),
    )
