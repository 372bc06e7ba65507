# a11y_scout/crawler/fetcher.py
"""
Fetcher module: HTTP page fetch capability with rate limiting, retry/backoff
and a per-navigation timeout.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup

from a11y_scout.crawler.link_extractor import extract_links, extract_title
from a11y_scout.crawler.models import PageSnapshot
from a11y_scout.errors import FetchError

logger = logging.getLogger("A11yScout")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
_HTML_TYPES = ("text/html", "application/xhtml+xml")


class PageFetcher:
    """Fetches pages over a shared aiohttp session."""

    def __init__(
        self,
        session: ClientSession,
        *,
        timeout: float = 30.0,
        rate_limit: float = 5.0,
        retry_times: int = 2,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        if rate_limit <= 0:
            raise ValueError("rate_limit must be > 0")
        self.session = session
        self.timeout = timeout
        self.rate_limit = rate_limit
        self.retry_times = retry_times
        self._retry_status = retry_status
        self._rate_lock = asyncio.Lock()
        self._last_request_ts = 0.0

    async def fetch(self, url: str) -> PageSnapshot:
        """
        Fetch ``url`` and return a snapshot with title and same-host links.

        HTTP error statuses are returned as-is (the caller decides); timeouts,
        transport errors and non-HTML bodies raise :class:`FetchError`.
        """
        attempts = 0
        while True:
            await self._wait_for_rate_limit()
            try:
                async with self.session.get(url, timeout=ClientTimeout(total=self.timeout)) as resp:
                    status = resp.status
                    if status in self._retry_status and attempts < self.retry_times:
                        raise ClientError(f"retryable status {status}")
                    final_url = str(resp.url)
                    if not 200 <= status < 400:
                        return PageSnapshot(url=url, status_code=status, final_url=final_url)
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime and mime not in _HTML_TYPES:
                        raise FetchError(url, f"unsupported content type {mime}")
                    html = await resp.text(errors="replace")
            except asyncio.TimeoutError as exc:
                # no retry after a navigation timeout
                raise FetchError(url, f"timed out after {self.timeout}s") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.retry_times:
                    raise FetchError(url, str(exc)) from exc
                backoff = min(60.0, 2 ** attempts * 0.1 + random.random() * 0.1)
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.retry_times, url, backoff)
                await asyncio.sleep(backoff)
                continue

            soup = BeautifulSoup(html, "html.parser")
            return PageSnapshot(
                url=url,
                status_code=status,
                html=html,
                title=extract_title(soup),
                final_url=final_url,
                links=extract_links(soup, final_url),
            )

    async def _wait_for_rate_limit(self) -> None:
        interval = 1 / self.rate_limit
        async with self._rate_lock:
            now = time.monotonic()
            wait = interval - (now - self._last_request_ts)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts = time.monotonic()


def build_session(user_agent: str, timeout: Optional[float] = None) -> ClientSession:
    """Create the client session used by the crawler and robots.txt fetch."""
    return ClientSession(
        timeout=ClientTimeout(total=timeout),
        headers={"User-Agent": user_agent},
        raise_for_status=False,
    )
