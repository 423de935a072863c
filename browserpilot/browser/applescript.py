"""AppleScript browser backend.

Controls Safari, or a Chromium browser whose debug port is unreachable, by
generating AppleScript and running it through osascript. JavaScript is
injected with `do JavaScript` (Safari) or `execute ... javascript` (Chromium).

The script runner is injectable so tests can inspect generated scripts
without running AppleScript.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

import structlog

from browserpilot.browser.backend import BrowserBackend
from browserpilot.browser.errors import ScriptFailedError

logger = structlog.get_logger(__name__)

ScriptRunner = Callable[[str], Awaitable[str]]

GET_TEXT_LIMIT = 10_000


def escape_applescript_string(value: str) -> str:
    """Escape a string for an AppleScript double-quoted literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def escape_js_in_applescript(value: str) -> str:
    """Escape a string for a JS single-quoted literal that sits inside an AppleScript string."""
    result = []
    for char in value:
        if char == "\\":
            # \\ for JS, doubled again for AppleScript
            result.append("\\\\\\\\")
        elif char == '"':
            result.append('\\"')
        elif char == "'":
            result.append("\\\\'")
        elif char == "\n":
            result.append("\\\\n")
        elif char == "\r":
            result.append("\\\\r")
        else:
            result.append(char)
    return "".join(result)


@dataclass(frozen=True)
class AppleScriptDialect:
    """AppleScript syntax for one browser application.

    Safari addresses `current tab` and uses `do JavaScript`; Chromium browsers
    (Chrome, Arc, Edge, Brave) address `active tab` and use `execute ... javascript`.
    """

    app_name: str
    is_safari: bool

    @classmethod
    def safari(cls) -> "AppleScriptDialect":
        return cls(app_name="Safari", is_safari=True)

    @classmethod
    def chrome(cls, app_name: str) -> "AppleScriptDialect":
        return cls(app_name=app_name, is_safari=False)

    @property
    def _tell(self) -> str:
        return f'tell application "{escape_applescript_string(self.app_name)}"'

    @property
    def _tab(self) -> str:
        return "current tab of front window" if self.is_safari else "active tab of front window"

    def navigate_script(self, escaped_url: str) -> str:
        """Script that points the current tab at an already-escaped URL."""
        return f'{self._tell}\n    set URL of {self._tab} to "{escaped_url}"\nend tell'

    def get_url_script(self) -> str:
        return f"{self._tell}\n    get URL of {self._tab}\nend tell"

    def execute_js_script(self, js: str) -> str:
        """Script that runs already-escaped JavaScript in the current tab."""
        if self.is_safari:
            return f'{self._tell}\n    do JavaScript "{js}" in {self._tab}\nend tell'
        return f"{self._tell}\n    execute front window's active tab javascript \"{js}\"\nend tell"


async def run_osascript(
    script: str,
    osascript_path: str = "osascript",
    timeout: float = 30.0,
) -> str:
    """Run an AppleScript and return its trimmed stdout.

    Raises:
        ScriptFailedError: on a non-zero exit, a timeout or a missing osascript
    """
    try:
        process = await asyncio.create_subprocess_exec(
            osascript_path, "-e", script,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ScriptFailedError(f"cannot run {osascript_path}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise ScriptFailedError(f"script timed out after {timeout:g}s") from e

    if process.returncode != 0:
        raise ScriptFailedError(stderr.decode("utf-8", errors="replace").strip() or f"exit code {process.returncode}")
    return stdout.decode("utf-8", errors="replace").rstrip("\n")


class AppleScriptBackend(BrowserBackend):
    """BrowserBackend that drives a browser through AppleScript."""

    def __init__(
        self,
        dialect: Optional[AppleScriptDialect] = None,
        script_runner: Optional[ScriptRunner] = None,
    ):
        """
        Args:
            dialect: Target application and syntax (defaults to Safari)
            script_runner: Coroutine function executing a script (defaults to osascript)
        """
        self.dialect = dialect or AppleScriptDialect.safari()
        self._run = script_runner or run_osascript
        self.log = logger.bind(component="applescript", app=self.dialect.app_name)

    async def _run_js(self, js: str) -> str:
        return await self._run(self.dialect.execute_js_script(js))

    async def navigate(self, url: str) -> None:
        self.log.info("AppleScript navigate", url=url)
        await self._run(self.dialect.navigate_script(escape_applescript_string(url)))

    async def get_url(self) -> str:
        self.log.info("AppleScript getURL")
        return await self._run(self.dialect.get_url_script())

    async def get_text(self) -> str:
        self.log.info("AppleScript getText")
        return await self._run_js(f"document.body.innerText.substring(0, {GET_TEXT_LIMIT})")

    async def find_element(self, selector: str) -> bool:
        self.log.info("AppleScript findElement", selector=selector)
        result = await self._run_js(f"!!document.querySelector('{escape_js_in_applescript(selector)}')")
        return result.strip() == "true"

    async def click_element(self, selector: str) -> None:
        self.log.info("AppleScript clickElement", selector=selector)
        escaped = escape_js_in_applescript(selector)
        await self._run_js(
            f"(function(){{ var el = document.querySelector('{escaped}'); "
            "if (!el) throw new Error('Not found'); el.click(); })()"
        )

    async def type_in_element(self, selector: str, text: str) -> None:
        self.log.info("AppleScript typeInElement", selector=selector)
        escaped_selector = escape_js_in_applescript(selector)
        escaped_text = escape_js_in_applescript(text)
        await self._run_js(
            f"(function(){{ var el = document.querySelector('{escaped_selector}'); "
            "if (!el) throw new Error('Not found'); el.focus(); "
            f"el.value = '{escaped_text}'; "
            "el.dispatchEvent(new Event('input', {bubbles:true})); "
            "el.dispatchEvent(new Event('change', {bubbles:true})); })()"
        )

    async def evaluate_js(self, expression: str) -> str:
        self.log.info("AppleScript evaluateJS")
        return await self._run_js(escape_applescript_string(expression))
