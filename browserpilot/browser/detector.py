"""Frontmost browser detection.

Stateless: asks the OS which application is frontmost and classifies its
bundle identifier against the browsers we know how to drive.
"""

import subprocess
from collections.abc import Callable
from typing import Optional

import structlog

from browserpilot.browser.models import BrowserInfo, BrowserType

logger = structlog.get_logger(__name__)

FrontmostApp = tuple[str, str, int]
FrontmostAppProvider = Callable[[], Optional[FrontmostApp]]

KNOWN_BROWSERS: dict[str, BrowserType] = {
    # Chromium-based
    "com.google.Chrome": BrowserType.CHROMIUM,
    "com.google.Chrome.canary": BrowserType.CHROMIUM,
    "com.microsoft.edgemac": BrowserType.CHROMIUM,
    "company.thebrowser.Browser": BrowserType.CHROMIUM,  # Arc
    "com.brave.Browser": BrowserType.CHROMIUM,
    "com.vivaldi.Vivaldi": BrowserType.CHROMIUM,
    "com.operasoftware.Opera": BrowserType.CHROMIUM,
    # Safari
    "com.apple.Safari": BrowserType.SAFARI,
    "com.apple.SafariTechnologyPreview": BrowserType.SAFARI,
    # Firefox
    "org.mozilla.firefox": BrowserType.FIREFOX,
    "org.mozilla.firefoxdeveloperedition": BrowserType.FIREFOX,
}

_FRONTMOST_SCRIPT = (
    'tell application "System Events"\n'
    "    set p to first application process whose frontmost is true\n"
    '    return (name of p) & "\\n" & (bundle identifier of p) & "\\n" & (unix id of p)\n'
    "end tell"
)


def system_events_frontmost_app(osascript_path: str = "osascript", timeout: float = 5.0) -> Optional[FrontmostApp]:
    """Return (name, bundle_id, pid) of the frontmost app via System Events, or None."""
    try:
        completed = subprocess.run(
            [osascript_path, "-e", _FRONTMOST_SCRIPT],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Frontmost app query failed", error=str(e))
        return None

    if completed.returncode != 0:
        logger.debug("Frontmost app query failed", stderr=completed.stderr.strip())
        return None

    lines = completed.stdout.strip().splitlines()
    if len(lines) != 3:
        return None
    name, bundle_id, pid = (line.strip() for line in lines)
    try:
        return name, bundle_id, int(pid)
    except ValueError:
        return None


class BrowserDetector:
    """Detects and classifies the frontmost browser."""

    def __init__(self, frontmost_app_provider: Optional[FrontmostAppProvider] = None):
        """
        Args:
            frontmost_app_provider: Returns (name, bundle_id, pid) or None.
                Defaults to a System Events query.
        """
        self.frontmost_app_provider = frontmost_app_provider or system_events_frontmost_app
        self.log = logger.bind(component="browser_detector")

    def classify_browser(self, bundle_id: str) -> BrowserType:
        return KNOWN_BROWSERS.get(bundle_id, BrowserType.UNKNOWN)

    def detect_frontmost_browser(self) -> Optional[BrowserInfo]:
        """Return the frontmost app if it is a known browser, otherwise None."""
        app = self.frontmost_app_provider()
        if app is None:
            return None

        name, bundle_id, pid = app
        if self.classify_browser(bundle_id) == BrowserType.UNKNOWN:
            self.log.debug("Frontmost app is not a browser", app=name, bundle_id=bundle_id)
            return None
        return BrowserInfo(name=name, bundle_id=bundle_id, pid=pid)
