"""Agent-facing browser tools.

Each tool wraps one BrowserBackend operation (usually a BrowserRouter) and
reports the outcome as a ToolResult. Bad arguments and browser failures come
back as error results for the model to read; they are not raised.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import structlog

from browserpilot.browser.backend import BrowserBackend
from browserpilot.browser.errors import BrowserError, CDPError
from browserpilot.config import BrowserSettings, get_settings
from browserpilot.utils.logging import LogContext, log_operation

logger = structlog.get_logger(__name__)

DEFAULT_MAX_TEXT_LENGTH = 10_000
TRUNCATION_MARKER = "... (truncated)"


class RiskLevel(str, Enum):
    """How much a tool can change the user's environment."""
    SAFE = "safe"               # Read-only
    CAUTION = "caution"         # Changes page state
    DANGEROUS = "dangerous"
    DESTRUCTIVE = "destructive"


@dataclass
class ToolDefinition:
    """Tool schema handed to the model."""
    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class ToolResult:
    """Outcome of one tool call."""
    tool_use_id: str
    content: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": self.content,
            "is_error": self.is_error,
        }


class MissingArgumentError(ValueError):
    """A required tool argument was absent or not a string."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required parameter: {name}")


def _string_arg(arguments: dict[str, Any], name: str) -> Optional[str]:
    value = arguments.get(name)
    return value if isinstance(value, str) else None


def _require_string(arguments: dict[str, Any], name: str) -> str:
    value = _string_arg(arguments, name)
    if value is None:
        raise MissingArgumentError(name)
    return value


class BrowserTool(ABC):
    """Base class for tools that drive the browser through a BrowserBackend."""

    definition: ToolDefinition
    risk_level: RiskLevel = RiskLevel.SAFE

    # Prefix for error results, e.g. "Navigation failed"
    failure_message: str = "Browser action failed"

    def __init__(self, backend: BrowserBackend):
        self.backend = backend
        self.log = logger.bind(component="browser_tools", tool=self.definition.name)

    @property
    def name(self) -> str:
        return self.definition.name

    async def execute(self, tool_use_id: str, arguments: Optional[dict[str, Any]] = None) -> ToolResult:
        """Run the tool and wrap the outcome.

        Args:
            tool_use_id: Id of the model's tool_use block
            arguments: Tool input as decoded JSON

        Returns:
            ToolResult; is_error is set for bad input and browser failures
        """
        try:
            with LogContext(tool_use_id=tool_use_id), log_operation(self.name, logger=self.log):
                content = await self._run(arguments or {})
        except MissingArgumentError as e:
            return ToolResult(tool_use_id=tool_use_id, content=str(e), is_error=True)
        except (CDPError, BrowserError) as e:
            return ToolResult(
                tool_use_id=tool_use_id,
                content=f"{self.failure_message}: {e}",
                is_error=True,
            )
        except Exception as e:
            self.log.exception("Unexpected error in browser tool", tool=self.name)
            return ToolResult(
                tool_use_id=tool_use_id,
                content=f"{self.failure_message}: {e}",
                is_error=True,
            )
        return ToolResult(tool_use_id=tool_use_id, content=content)

    @abstractmethod
    async def _run(self, arguments: dict[str, Any]) -> str:
        """Perform the action and return the result text."""


class BrowserNavigateTool(BrowserTool):
    """Navigates the frontmost browser tab to a URL."""

    definition = ToolDefinition(
        name="browser_navigate",
        description=(
            "Navigates the current browser tab to a URL. Works with Safari and Chromium "
            "browsers (Chrome, Arc, Edge, Brave). Chromium browsers are driven fastest when "
            "launched with --remote-debugging-port=9222."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": 'The URL to navigate to (e.g. "https://example.com").',
                }
            },
            "required": ["url"],
        },
    )
    risk_level = RiskLevel.CAUTION
    failure_message = "Navigation failed"

    async def _run(self, arguments: dict[str, Any]) -> str:
        url = _require_string(arguments, "url")
        await self.backend.navigate(url)
        self.log.info("browser_navigate", url=url)
        return f"Navigated to {url}"


class BrowserGetURLTool(BrowserTool):
    """Returns the URL of the current browser tab."""

    definition = ToolDefinition(
        name="browser_get_url",
        description="Returns the URL of the current browser tab.",
        input_schema={"type": "object", "properties": {}, "required": []},
    )
    failure_message = "Failed to get URL"

    async def _run(self, arguments: dict[str, Any]) -> str:
        url = await self.backend.get_url()
        self.log.info("browser_get_url", url=url)
        return url


class BrowserGetTextTool(BrowserTool):
    """Returns the visible text of the current page, truncated to max_length."""

    definition = ToolDefinition(
        name="browser_get_text",
        description=(
            "Returns the visible text content of the current browser page. Prefer this over "
            "screenshots for reading page content."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "max_length": {
                    "type": "integer",
                    "description": f"Maximum number of characters to return. Defaults to {DEFAULT_MAX_TEXT_LENGTH}.",
                }
            },
            "required": [],
        },
    )
    failure_message = "Failed to get page text"

    def __init__(self, backend: BrowserBackend, default_max_length: int = DEFAULT_MAX_TEXT_LENGTH):
        super().__init__(backend)
        self.default_max_length = default_max_length

    def _max_length(self, arguments: dict[str, Any]) -> int:
        value = arguments.get("max_length")
        # JSON numbers may arrive as floats; bool is an int subclass
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
            return int(value)
        return self.default_max_length

    async def _run(self, arguments: dict[str, Any]) -> str:
        max_length = self._max_length(arguments)
        text = await self.backend.get_text()
        truncated = len(text) > max_length
        if truncated:
            text = text[:max_length] + TRUNCATION_MARKER
        self.log.info("browser_get_text", chars=len(text), truncated=truncated)
        return text


class BrowserFindElementTool(BrowserTool):
    """Looks for an element by CSS selector, visible text, or both."""

    definition = ToolDefinition(
        name="browser_find_element",
        description=(
            "Searches for an element in the current browser page. Provide a CSS selector, "
            "visible text, or both. At least one parameter is required."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector to find the element (e.g. \"#submit\", \".btn\", \"input[type='email']\").",
                },
                "text": {
                    "type": "string",
                    "description": "Visible text content to search for in the page.",
                },
            },
            "required": [],
        },
    )
    failure_message = "Find element failed"

    async def _run(self, arguments: dict[str, Any]) -> str:
        selector = _string_arg(arguments, "selector")
        text = _string_arg(arguments, "text")

        if selector is None and text is None:
            raise MissingArgumentError("selector or text")

        if selector is None:
            return await self._find_text(text)

        if not await self.backend.find_element(selector):
            return f"Element not found: {selector}"
        if text is None:
            return f"Element found: {selector}"

        contains = await self.backend.evaluate_js(
            f"(document.querySelector({json.dumps(selector)})?.textContent ?? '')"
            f".includes({json.dumps(text)})"
        )
        if contains == "true":
            return f"Element found: {selector} contains '{text}'"
        return f"Element found: {selector}, but text '{text}' not found in it."

    async def _find_text(self, text: str) -> str:
        found = await self.backend.evaluate_js(
            "Array.from(document.querySelectorAll('*'))"
            f".some(el => el.textContent && el.textContent.includes({json.dumps(text)}))"
        )
        if found == "true":
            return f"Text '{text}' found on page."
        return f"Text '{text}' not found on page."


class BrowserClickTool(BrowserTool):
    """Clicks the element matching a CSS selector."""

    definition = ToolDefinition(
        name="browser_click",
        description=(
            "Clicks a DOM element in the current browser page matching the given CSS selector. "
            "Prefer this over clicking pixel coordinates for web page elements."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": 'CSS selector of the element to click (e.g. "button#submit", ".btn-primary").',
                }
            },
            "required": ["selector"],
        },
    )
    risk_level = RiskLevel.CAUTION
    failure_message = "Click failed"

    async def _run(self, arguments: dict[str, Any]) -> str:
        selector = _require_string(arguments, "selector")
        await self.backend.click_element(selector)
        self.log.info("browser_click", selector=selector)
        return f"Clicked element matching '{selector}'"


class BrowserTypeTool(BrowserTool):
    """Sets the value of a form element and fires input/change events."""

    definition = ToolDefinition(
        name="browser_type",
        description=(
            "Types text into a DOM element in the current browser page matching the given CSS "
            "selector. Sets the element's value and dispatches input/change events."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": 'CSS selector of the element to type into (e.g. "input#email", "textarea.message").',
                },
                "text": {
                    "type": "string",
                    "description": "The text to type into the element.",
                },
            },
            "required": ["selector", "text"],
        },
    )
    risk_level = RiskLevel.CAUTION
    failure_message = "Type failed"

    async def _run(self, arguments: dict[str, Any]) -> str:
        selector = _require_string(arguments, "selector")
        text = _require_string(arguments, "text")
        await self.backend.type_in_element(selector, text)
        self.log.info("browser_type", selector=selector)
        return f"Typed '{text}' into element matching '{selector}'"


def build_browser_tools(
    backend: BrowserBackend,
    settings: Optional[BrowserSettings] = None,
) -> list[BrowserTool]:
    """Create every browser tool over one backend.

    Args:
        backend: Backend the tools drive, normally a BrowserRouter
        settings: Source of the browser_get_text default length

    Returns:
        navigate, get_url, get_text, find_element, click and type tools
    """
    settings = settings or get_settings()
    return [
        BrowserNavigateTool(backend),
        BrowserGetURLTool(backend),
        BrowserGetTextTool(backend, default_max_length=settings.get_text_max_length),
        BrowserFindElementTool(backend),
        BrowserClickTool(backend),
        BrowserTypeTool(backend),
    ]
