"""Browser control contract.

One interface, two unrelated strategies behind it:

                      ┌─────────────────────────────┐
                      │       BrowserBackend        │
                      │    (Abstract Interface)     │
                      └─────────────┬───────────────┘
                                    │
                ┌───────────────────┴───────────────────┐
                ▼                                       ▼
        ┌────────────────┐                  ┌────────────────────┐
        │   CDPBackend   │                  │ AppleScriptBackend │
        │ (DevTools RPC) │                  │    (osascript)     │
        └────────────────┘                  └────────────────────┘

BrowserRouter also implements this interface and picks one of the two per call.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BrowserBackend(ABC):
    """High-level control of the current tab of a browser.

    Agent tools talk to this interface only, so they work the same whether
    the page is driven over DevTools or AppleScript.
    """

    @abstractmethod
    async def navigate(self, url: str) -> Optional[str]:
        """Navigate the current tab. May return a backend-specific handle (CDP frame id)."""

    @abstractmethod
    async def get_url(self) -> str:
        """Return the URL of the current tab."""

    @abstractmethod
    async def get_text(self) -> str:
        """Return the visible text of the current page."""

    @abstractmethod
    async def find_element(self, selector: str) -> bool:
        """Return True if an element matches the CSS selector."""

    @abstractmethod
    async def click_element(self, selector: str) -> None:
        """Click the element matching the CSS selector."""

    @abstractmethod
    async def type_in_element(self, selector: str, text: str) -> None:
        """Set the value of the element matching the selector and fire input/change events."""

    @abstractmethod
    async def evaluate_js(self, expression: str) -> str:
        """Evaluate a JavaScript expression and return the result rendered as a string."""
