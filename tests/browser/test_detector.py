"""Tests for frontmost browser detection."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from browserpilot.browser.detector import KNOWN_BROWSERS, BrowserDetector, system_events_frontmost_app
from browserpilot.browser.models import BrowserInfo, BrowserType


class TestClassifyBrowser:
    """Tests for bundle id classification."""

    @pytest.mark.parametrize(
        "bundle_id",
        [
            "com.google.Chrome",
            "com.google.Chrome.canary",
            "com.microsoft.edgemac",
            "company.thebrowser.Browser",
            "com.brave.Browser",
            "com.vivaldi.Vivaldi",
            "com.operasoftware.Opera",
        ],
    )
    def test_chromium_family(self, bundle_id):
        assert BrowserDetector(lambda: None).classify_browser(bundle_id) == BrowserType.CHROMIUM

    @pytest.mark.parametrize("bundle_id", ["com.apple.Safari", "com.apple.SafariTechnologyPreview"])
    def test_safari_family(self, bundle_id):
        assert BrowserDetector(lambda: None).classify_browser(bundle_id) == BrowserType.SAFARI

    @pytest.mark.parametrize("bundle_id", ["org.mozilla.firefox", "org.mozilla.firefoxdeveloperedition"])
    def test_firefox_family(self, bundle_id):
        assert BrowserDetector(lambda: None).classify_browser(bundle_id) == BrowserType.FIREFOX

    def test_unknown(self):
        assert BrowserDetector(lambda: None).classify_browser("com.apple.finder") == BrowserType.UNKNOWN

    def test_known_browsers_values(self):
        assert set(KNOWN_BROWSERS.values()) == {BrowserType.CHROMIUM, BrowserType.SAFARI, BrowserType.FIREFOX}


class TestDetectFrontmostBrowser:
    """Tests for BrowserDetector.detect_frontmost_browser."""

    def test_browser_frontmost(self):
        detector = BrowserDetector(lambda: ("Google Chrome", "com.google.Chrome", 501))

        assert detector.detect_frontmost_browser() == BrowserInfo(
            name="Google Chrome", bundle_id="com.google.Chrome", pid=501
        )

    def test_nothing_frontmost(self):
        assert BrowserDetector(lambda: None).detect_frontmost_browser() is None

    def test_non_browser_frontmost(self):
        detector = BrowserDetector(lambda: ("Finder", "com.apple.finder", 300))

        assert detector.detect_frontmost_browser() is None

    def test_firefox_is_reported(self):
        """Test a known but unsupported browser is still reported, for the router to reject."""
        detector = BrowserDetector(lambda: ("Firefox", "org.mozilla.firefox", 99))

        assert detector.detect_frontmost_browser().name == "Firefox"


class TestSystemEventsProvider:
    """Tests for the osascript-backed frontmost app query."""

    def test_parses_output(self):
        completed = MagicMock(returncode=0, stdout="Safari\ncom.apple.Safari\n812\n", stderr="")
        with patch("browserpilot.browser.detector.subprocess.run", return_value=completed) as run:
            assert system_events_frontmost_app("/usr/bin/osascript") == ("Safari", "com.apple.Safari", 812)

        assert run.call_args.args[0][:2] == ["/usr/bin/osascript", "-e"]

    def test_failure_exit(self):
        completed = MagicMock(returncode=1, stdout="", stderr="System Events got an error")
        with patch("browserpilot.browser.detector.subprocess.run", return_value=completed):
            assert system_events_frontmost_app() is None

    def test_osascript_missing(self):
        with patch("browserpilot.browser.detector.subprocess.run", side_effect=FileNotFoundError("osascript")):
            assert system_events_frontmost_app() is None

    def test_timeout(self):
        with patch(
            "browserpilot.browser.detector.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="osascript", timeout=5),
        ):
            assert system_events_frontmost_app() is None

    def test_malformed_output(self):
        completed = MagicMock(returncode=0, stdout="Safari\ncom.apple.Safari\nnot-a-pid\n", stderr="")
        with patch("browserpilot.browser.detector.subprocess.run", return_value=completed):
            assert system_events_frontmost_app() is None
