import asyncio
import logging
import httpx
from typing import Optional

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
FETCH_TIMEOUT = 30.0  # seconds, connect through last body byte


class HTTPClient:
    def __init__(self, timeout: float = FETCH_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.client = httpx.AsyncClient(http2=False, follow_redirects=True, transport=transport)

    def _get_headers(self):
        return {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "DNT": "1",
            "Upgrade-Insecure-Requests": "1",
        }

    async def fetch(self, url: str) -> Optional[str]:
        """
        Fetches the content of a URL.
        Returns the HTML content as string, or None on timeout, network
        error or a non-2xx status. Failed fetches are not retried.
        """
        try:
            # httpx timeouts apply per phase; wait_for caps the whole fetch including the body
            response = await asyncio.wait_for(
                self.client.get(url, headers=self._get_headers(), timeout=self.timeout),
                self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(f"Timed out after {self.timeout:.0f}s fetching {url}")
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            return None

        if not response.is_success:
            logger.warning(f"HTTP {response.status_code} {response.reason_phrase} for {url}")
            return None

        logger.info(f"Fetched {len(response.text)} characters from {url}")
        return response.text

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
