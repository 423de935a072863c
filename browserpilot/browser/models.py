"""
Browser Models

Types shared by discovery, the CDP client, the detector and the router.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BrowserType(str, Enum):
    """Browser family, as far as control strategy is concerned."""
    CHROMIUM = "chromium"   # CDP capable
    SAFARI = "safari"       # AppleScript only
    FIREFOX = "firefox"     # unsupported
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class BrowserInfo:
    """The frontmost browser application."""
    name: str
    bundle_id: str
    pid: int


@dataclass(frozen=True)
class CDPTarget:
    """A debuggable browsing context advertised by the /json endpoint."""
    id: str
    title: str
    url: str
    websocket_url: str
    type: str

    @property
    def is_page(self) -> bool:
        return self.type == "page"

    @classmethod
    def from_dict(cls, data: dict) -> "CDPTarget":
        """Build a target from one /json entry.

        Raises:
            KeyError: if id, type or webSocketDebuggerUrl is missing
            TypeError: if webSocketDebuggerUrl is not a string
        """
        websocket_url = data["webSocketDebuggerUrl"]
        if not isinstance(websocket_url, str):
            raise TypeError(f"webSocketDebuggerUrl must be a string, got {type(websocket_url).__name__}")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            url=str(data.get("url", "")),
            websocket_url=websocket_url,
            type=str(data["type"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "webSocketDebuggerUrl": self.websocket_url,
            "type": self.type,
        }


@dataclass(frozen=True)
class CDPCommand:
    """One outgoing protocol command."""
    id: int
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
