"""
Browser control over Chrome DevTools Protocol and AppleScript.

This module drives whichever browser is frontmost:
- CDPBackend: DevTools RPC client for Chromium browsers (Chrome, Arc, Edge, Brave)
- AppleScriptBackend: osascript automation for Safari, and for Chromium without a debug port
- BrowserRouter: Detects the frontmost browser and picks a backend per call

Usage:
    from browserpilot.browser import create_browser_router

    router = create_browser_router()
    await router.navigate("https://example.com")
    text = await router.get_text()
    await router.close()
"""

from .applescript import (
    AppleScriptBackend,
    AppleScriptDialect,
    run_osascript,
)
from .backend import BrowserBackend
from .cdp_backend import CDPBackend
from .detector import BrowserDetector, KNOWN_BROWSERS
from .discovery import CDPDiscovery, HttpDiscovery
from .errors import (
    BrowserError,
    CDPError,
    CommandTimeoutError,
    ConnectionClosedError,
    ConnectionFailedError,
    DiscoveryFailedError,
    EvaluationError,
    InvalidResponseError,
    NavigationFailedError,
    NoBrowserDetectedError,
    NoTargetsFoundError,
    NotConnectedError,
    ScriptFailedError,
    UnsupportedBrowserError,
)
from .models import BrowserInfo, BrowserType, CDPCommand, CDPTarget
from .router import BrowserRouter, create_browser_router
from .transport import CDPTransport, WebSocketTransport

__all__ = [
    # Backends
    "BrowserBackend",
    "CDPBackend",
    "AppleScriptBackend",
    "AppleScriptDialect",
    "BrowserRouter",
    "create_browser_router",
    "run_osascript",
    # Collaborators
    "BrowserDetector",
    "KNOWN_BROWSERS",
    "CDPDiscovery",
    "HttpDiscovery",
    "CDPTransport",
    "WebSocketTransport",
    # Models
    "BrowserInfo",
    "BrowserType",
    "CDPCommand",
    "CDPTarget",
    # Errors
    "BrowserError",
    "CDPError",
    "CommandTimeoutError",
    "ConnectionClosedError",
    "ConnectionFailedError",
    "DiscoveryFailedError",
    "EvaluationError",
    "InvalidResponseError",
    "NavigationFailedError",
    "NoBrowserDetectedError",
    "NoTargetsFoundError",
    "NotConnectedError",
    "ScriptFailedError",
    "UnsupportedBrowserError",
]
