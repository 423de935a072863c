"""Agent tools for browser control.

Usage:
    from browserpilot.browser import create_browser_router
    from browserpilot.tools import build_browser_tools

    tools = {tool.name: tool for tool in build_browser_tools(create_browser_router())}
    result = await tools["browser_navigate"].execute("toolu_01", {"url": "https://example.com"})
"""

from .browser_tools import (
    BrowserClickTool,
    BrowserFindElementTool,
    BrowserGetTextTool,
    BrowserGetURLTool,
    BrowserNavigateTool,
    BrowserTool,
    BrowserTypeTool,
    RiskLevel,
    ToolDefinition,
    ToolResult,
    build_browser_tools,
)

__all__ = [
    "BrowserTool",
    "BrowserNavigateTool",
    "BrowserGetURLTool",
    "BrowserGetTextTool",
    "BrowserFindElementTool",
    "BrowserClickTool",
    "BrowserTypeTool",
    "RiskLevel",
    "ToolDefinition",
    "ToolResult",
    "build_browser_tools",
]
