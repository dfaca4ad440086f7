"""
HTTP client for fetching listing pages.

Sends browser-like headers (some job boards reject default client
signatures) and turns network failures and non-2xx responses into
FetchError. No automatic retries: a failed page aborts the run.
"""
import os
import time
import logging
from typing import Optional, Dict

import httpx

from crawler.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_TIMEOUT = 30.0


class HTTPClient:
    """Thin async wrapper around httpx with politeness headers"""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent or os.getenv("DYPSE_CRAWLER_UA", DEFAULT_UA)
        self.timeout = httpx.Timeout(timeout)
        # Injected by tests (httpx.MockTransport)
        self._transport = transport

    def _get_headers(self, custom_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Build request headers with a browser-like UA"""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Connection": "keep-alive",
        }
        if custom_headers:
            headers.update(custom_headers)
        return headers

    async def get_text(
        self,
        url: str,
        page: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        GET a page and return its decoded body.

        Args:
            url: Page URL
            page: Page number, only used for error context
            headers: Extra headers merged over the defaults

        Raises:
            FetchError: on network failure or a non-2xx status
        """
        request_headers = self._get_headers(headers)

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            start_time = time.time()
            try:
                response = await client.get(url, headers=request_headers)
            except httpx.HTTPError as e:
                logger.error(f"[net] GET {url} failed: {e}")
                raise FetchError(url, page=page, reason=str(e)) from e

            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(f"[net] GET {response.status_code} {url} ({len(response.content)} bytes, {elapsed_ms}ms)")

            if not response.is_success:
                raise FetchError(url, page=page, status=response.status_code)

            return response.text
