"""Browser control for agents: DevTools RPC, AppleScript fallback and per-call routing."""

__version__ = "0.1.0"
