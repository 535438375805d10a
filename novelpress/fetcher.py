"""HTTP fetching and HTML parsing.

``PageFetcher`` wraps a single ``httpx.AsyncClient`` and retries failed
requests with exponential backoff. Unlike a best-effort scraper it does
not hide failures: once the retries are used up a ``TransportFailure``
is raised so that the caller can abandon the work it belongs to.
Pages are parsed with BeautifulSoup's ``lxml`` tree builder.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx
from bs4 import BeautifulSoup

from .errors import ParseFailure, TransportFailure

logger = logging.getLogger(__name__)

# Some sites return a 403 or a stripped page without a browser user agent.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/90.0.4430.212 Safari/537.36"
)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class PageFetcher:
    """Fetch raw page bytes, retrying transient failures.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with PageFetcher() as fetcher:
            html = await fetcher.fetch(url)

    ``transport`` is handed to ``httpx.AsyncClient``; tests pass an
    ``httpx.MockTransport`` here.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        headers: Dict[str, str] = {"User-Agent": user_agent}
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, address: str) -> bytes:
        reason = "no attempt made"
        for attempt in range(self.max_retries):
            try:
                response = await self._client.get(address)
            except httpx.HTTPError as exc:
                reason = f"{type(exc).__name__}: {exc}"
            else:
                if response.status_code == 200:
                    return response.content
                reason = f"HTTP {response.status_code}"
                if response.status_code not in RETRYABLE_STATUS:
                    break
            if attempt + 1 < self.max_retries:
                delay = self.backoff * (2 ** attempt)
                logger.warning("Fetching %s failed (%s), retrying in %.1fs", address, reason, delay)
                await asyncio.sleep(delay)
        raise TransportFailure(address, reason)

    async def fetch_page(self, address: str) -> BeautifulSoup:
        """Fetch ``address`` and return the parsed document."""
        html = await self.fetch(address)
        return parse_page(html, address)


def parse_page(html, address: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception as exc:  # bs4 surfaces parser failures with varied types
        raise ParseFailure(address) from exc
