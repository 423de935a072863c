"""
Browser control errors.

Two families:
- CDPError: raised by the DevTools transport, discovery and RPC client
- BrowserError: raised by the router and the AppleScript backend

Every error renders a message an agent can act on.
"""


class CDPError(Exception):
    """Base exception for Chrome DevTools Protocol errors."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.describe())

    def describe(self) -> str:
        return self.detail or "Chrome DevTools Protocol error"


class ConnectionFailedError(CDPError):
    """Could not open the debugging connection."""

    def describe(self) -> str:
        return (
            f"Could not connect to the browser's debugging endpoint: {self.detail}. "
            "Launch the browser with --remote-debugging-port=9222."
        )


class DiscoveryFailedError(CDPError):
    """The /json target lookup failed or returned something unusable."""

    def describe(self) -> str:
        return (
            f"Browser target discovery failed: {self.detail}. "
            "The browser is probably not running with remote debugging enabled."
        )


class NoTargetsFoundError(CDPError):
    """Discovery succeeded but advertised no page targets."""

    def describe(self) -> str:
        return "No browser tabs available for remote debugging. Open a tab and try again."


class NotConnectedError(CDPError):
    """A command was issued without an open connection."""

    def describe(self) -> str:
        return "Not connected to the browser. Connect to a browser with remote debugging enabled first."


class CommandTimeoutError(CDPError):
    """A command got no response within its timeout."""

    def __init__(self, method: str, timeout: float):
        self.method = method
        self.timeout = timeout
        super().__init__(f"{method} timed out after {timeout:g}s")

    def describe(self) -> str:
        return f"Browser command {self.detail}"


class InvalidResponseError(CDPError):
    """The browser answered with an error or an unexpected payload."""

    def describe(self) -> str:
        return f"Invalid response from browser: {self.detail}"


class EvaluationError(CDPError):
    """Script evaluation threw inside the page."""

    def describe(self) -> str:
        return f"JavaScript evaluation failed: {self.detail}"


class ConnectionClosedError(CDPError):
    """The debugging connection closed while a command was outstanding."""

    def describe(self) -> str:
        return "Connection to the browser was closed."


class BrowserError(Exception):
    """Base exception for browser routing and scripting errors."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.describe())

    def describe(self) -> str:
        return self.detail or "Browser error"


class NoBrowserDetectedError(BrowserError):
    """No supported browser is frontmost."""

    def describe(self) -> str:
        return "No browser detected. Bring Safari or a Chromium browser to the foreground and try again."


class UnsupportedBrowserError(BrowserError):
    """The frontmost application is a browser family we cannot drive."""

    def describe(self) -> str:
        return f"Unsupported browser: {self.detail}. Use Safari or a Chromium browser."


class ScriptFailedError(BrowserError):
    """An AppleScript run failed."""

    def describe(self) -> str:
        return (
            f"AppleScript failed: {self.detail}. "
            "Check that automation (Apple Events) permission is granted for the browser."
        )


class NavigationFailedError(BrowserError):
    """Navigation could not be performed."""

    def describe(self) -> str:
        return f"Navigation failed: {self.detail}"
