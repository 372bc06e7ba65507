# === FILE: a11y_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Protocol, Sequence, Set, Tuple
from urllib.parse import urlparse

from aiohttp import ClientSession

from a11y_scout.crawler.fetcher import PageFetcher, build_session
from a11y_scout.crawler.frontier import CrawlPolicy, Frontier
from a11y_scout.crawler.models import CrawlTask, PageRecord, PageSnapshot
from a11y_scout.crawler.robots import fetch_robots_txt
from a11y_scout.errors import FetchError

__all__ = ("FetchCapability", "SiteCrawler", "crawl")


class FetchCapability(Protocol):
    async def fetch(self, url: str) -> PageSnapshot: ...


_Visit = Tuple[CrawlTask, Optional[PageSnapshot]]


class SiteCrawler:
    """Breadth-first crawler bounded by page count and link depth.

    Used as an async context manager: entering opens the HTTP session (unless
    a fetch capability was injected) and loads robots.txt when requested.
    """

    def __init__(
        self,
        base_url: str,
        *,
        max_pages: int = 50,
        max_depth: int = 3,
        include_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
        respect_robots: bool = True,
        fetcher: Optional[FetchCapability] = None,
        session: Optional[ClientSession] = None,
        user_agent: str = "A11yScoutBot/1.0",
        timeout: float = 30.0,
        rate_limit: float = 5.0,
        retry_times: int = 2,
        concurrency: int = 1,
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        self.base_url = str(base_url)
        self.host = (urlparse(self.base_url).hostname or "").lower()
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.include_patterns = tuple(include_patterns)
        self.exclude_patterns = tuple(exclude_patterns)
        self.respect_robots = respect_robots
        self.user_agent = user_agent
        self.timeout = timeout
        self.rate_limit = rate_limit
        self.retry_times = retry_times
        self.concurrency = max(1, concurrency)
        self.fetcher = fetcher
        self.session = session
        self._owns_session = False
        self.disallowed_paths: List[str] = []
        self.failures: List[str] = []
        self.skipped: List[Tuple[str, int]] = []
        self.visited: Set[str] = set()
        self.logger = logging.getLogger("A11yScout")

    @classmethod
    def from_config(cls, config, **kwargs) -> SiteCrawler:
        return cls(
            str(config.base_url),
            max_pages=config.max_pages,
            max_depth=config.max_depth,
            include_patterns=config.include_patterns,
            exclude_patterns=config.exclude_patterns,
            respect_robots=config.respect_robots,
            user_agent=config.user_agent,
            timeout=config.timeout,
            rate_limit=config.rate_limit,
            retry_times=config.retry_times,
            concurrency=config.concurrency,
            **kwargs,
        )

    async def __aenter__(self) -> SiteCrawler:
        if self.session is None and (self.fetcher is None or self.respect_robots):
            self.session = build_session(self.user_agent)
            self._owns_session = True
        if self.fetcher is None:
            self.fetcher = PageFetcher(
                self.session,
                timeout=self.timeout,
                rate_limit=self.rate_limit,
                retry_times=self.retry_times,
            )
        if self.respect_robots:
            self.disallowed_paths = await fetch_robots_txt(
                self.session, self.base_url, timeout=min(self.timeout, 10.0)
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    def policy(self) -> CrawlPolicy:
        return CrawlPolicy(
            max_depth=self.max_depth,
            allowed_host=self.host,
            include_patterns=self.include_patterns,
            exclude_patterns=self.exclude_patterns,
            disallowed_paths=tuple(self.disallowed_paths),
        )

    async def crawl(self) -> List[PageRecord]:
        if self.fetcher is None:
            raise RuntimeError("SiteCrawler must be entered with 'async with' before crawl()")
        self.logger.info("Crawl started: %s", self.base_url)
        start = time.monotonic()
        frontier = Frontier(self.policy())
        frontier.offer(self.base_url, 0)
        results: List[PageRecord] = []
        in_flight: Set[asyncio.Task[_Visit]] = set()

        try:
            while len(results) < self.max_pages and (len(frontier) or in_flight):
                # never start more fetches than the remaining page budget
                while (
                    len(frontier)
                    and len(in_flight) < self.concurrency
                    and len(results) + len(in_flight) < self.max_pages
                ):
                    task = frontier.pop()
                    if task is None:
                        break
                    in_flight.add(asyncio.create_task(self._visit(task)))
                if not in_flight:
                    break
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                for finished in done:
                    in_flight.discard(finished)
                    task, snapshot = finished.result()
                    if snapshot is None or len(results) >= self.max_pages:
                        continue
                    results.append(PageRecord(task.url, task.depth, snapshot.status_code, snapshot.title))
                    if task.depth < self.max_depth:
                        frontier.offer_all(snapshot.links, task.depth + 1)
        finally:
            for pending in in_flight:
                pending.cancel()
            if in_flight:
                await asyncio.gather(*in_flight, return_exceptions=True)

        self.visited = set(frontier.visited)
        duration = time.monotonic() - start
        self.logger.info(
            "Crawl complete: %d pages in %.2f s (%d failed, %d skipped)",
            len(results), duration, len(self.failures), len(self.skipped),
        )
        if self.disallowed_paths:
            self.logger.info("robots.txt disallows %d path prefix(es)", len(self.disallowed_paths))
        return results

    async def _visit(self, task: CrawlTask) -> _Visit:
        self.logger.info("Crawling [%d]: %s", task.depth, task.url)
        try:
            snapshot = await self.fetcher.fetch(task.url)  # type: ignore[union-attr]
        except FetchError as exc:
            self.logger.warning("Failed to crawl %s: %s", task.url, exc.reason)
            self.failures.append(task.url)
            return task, None
        if not snapshot.ok:
            self.logger.info("Skipping %s: HTTP %s", task.url, snapshot.status_code)
            self.skipped.append((task.url, snapshot.status_code))
            return task, None
        final_host = urlparse(snapshot.final_url or task.url).hostname
        if final_host != self.host:
            self.logger.info("Skipping %s: redirected off-site to %s", task.url, snapshot.final_url)
            self.skipped.append((task.url, snapshot.status_code))
            return task, None
        return task, snapshot


async def crawl(
    base_url: str,
    max_pages: int = 100,
    max_depth: int = 3,
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
    respect_robots: bool = True,
    **kwargs,
) -> List[PageRecord]:
    """Crawl ``base_url`` and return the pages found, shallowest first."""
    async with SiteCrawler(
        base_url,
        max_pages=max_pages,
        max_depth=max_depth,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        respect_robots=respect_robots,
        **kwargs,
    ) as crawler:
        return await crawler.crawl()