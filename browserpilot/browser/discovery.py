"""
DevTools target discovery.

A browser started with --remote-debugging-port serves GET /json on that port,
listing every debuggable target. We pick the first "page" target and hand its
webSocketDebuggerUrl to the transport.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog

from browserpilot.browser.errors import DiscoveryFailedError, NoTargetsFoundError
from browserpilot.browser.models import CDPTarget

logger = structlog.get_logger(__name__)


class CDPDiscovery(ABC):
    """Finds debuggable targets on a browser's debug port."""

    @abstractmethod
    async def list_targets(self, port: int) -> list[CDPTarget]:
        """Return every target advertised on the port."""

    async def find_page_target(self, port: int) -> CDPTarget:
        """Return the first target of type "page".

        Raises:
            NoTargetsFoundError: if no page target is advertised
            DiscoveryFailedError: if the lookup itself failed
        """
        targets = await self.list_targets(port)
        for target in targets:
            if target.is_page:
                return target
        raise NoTargetsFoundError()


class HttpDiscovery(CDPDiscovery):
    """Queries http://<host>:<port>/json with httpx."""

    def __init__(
        self,
        host: str = "localhost",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            host: Host serving the debug endpoint
            timeout: Request timeout in seconds
            client: Optional pre-built client (used as-is, not closed here)
        """
        self.host = host
        self.timeout = timeout
        self._client = client
        self.log = logger.bind(component="cdp_discovery")

    def discovery_url(self, port: int) -> str:
        return f"http://{self.host}:{port}/json"

    async def _fetch(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            return await client.get(url)

    async def list_targets(self, port: int) -> list[CDPTarget]:
        url = self.discovery_url(port)

        try:
            response = await self._fetch(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise DiscoveryFailedError(f"HTTP {e.response.status_code} from {url}") from e
        except httpx.HTTPError as e:
            raise DiscoveryFailedError(f"{url}: {e}") from e
        except ValueError as e:
            # JSONDecodeError or UnicodeDecodeError
            raise DiscoveryFailedError(f"{url} returned non-JSON body") from e

        if not isinstance(payload, list):
            raise DiscoveryFailedError(f"{url} returned {type(payload).__name__}, expected a list")

        try:
            targets = [CDPTarget.from_dict(entry) for entry in payload]
        except (KeyError, TypeError, AttributeError) as e:
            raise DiscoveryFailedError(f"malformed target entry: {e}") from e

        self.log.debug("Discovered targets", url=url, count=len(targets))
        return targets
