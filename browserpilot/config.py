"""Configuration management for browser control."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CDP_PORT = 9222


class BrowserSettings(BaseSettings):
    """Browser control settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSERPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Chrome DevTools Protocol
    cdp_host: str = Field("localhost", description="Host serving the remote debugging endpoint")
    cdp_port: int = Field(DEFAULT_CDP_PORT, description="Remote debugging port (--remote-debugging-port)")
    command_timeout_seconds: float = Field(10.0, gt=0, description="Per-command CDP response timeout")
    discovery_timeout_seconds: float = Field(5.0, gt=0, description="Timeout for the /json target lookup")

    # AppleScript
    osascript_path: str = Field("osascript", description="Executable used to run AppleScript")
    script_timeout_seconds: float = Field(30.0, gt=0, description="Timeout for a single AppleScript run")

    # Agent tools
    get_text_max_length: int = Field(10_000, gt=0, description="Default truncation for browser_get_text")

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    json_logs: bool = Field(False, description="Render logs as JSON")


def get_settings() -> BrowserSettings:
    """Get browser control settings."""
    return BrowserSettings()
