# a11y_scout/collector/browser.py
"""
Headless Chromium engine: Playwright loads the page, axe-core tests it, and
DOM context is taken from the rendered markup.

Requires the ``browser`` extra (``pip install a11y-scout[browser]`` followed
by ``playwright install chromium``) and a local copy of ``axe.min.js``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional, Sequence

from bs4 import BeautifulSoup

from a11y_scout.collector.axe import parse_axe_results
from a11y_scout.collector.context import extract_static_context
from a11y_scout.collector.models import DomContext, EngineViolation
from a11y_scout.errors import ConfigError, FetchError

logger = logging.getLogger("A11yScout")

_AXE_RUN_JS = """
([context, options]) => axe.run(context || document, options)
"""


@dataclass
class BrowserPage:
    url: str
    page: Any
    soup: Optional[BeautifulSoup] = None


class PlaywrightAxeEngine:
    """Accessibility engine backed by Playwright and axe-core."""

    def __init__(self, axe_script: Optional[str], *, timeout: float = 30.0, headless: bool = True) -> None:
        if not axe_script:
            raise ConfigError("axe_script (path to axe.min.js) is required for the browser engine")
        script = Path(axe_script).expanduser()
        if not script.is_file():
            raise ConfigError(f"axe script not found: {script}")
        self.axe_script = script
        self.timeout_ms = int(timeout * 1000)
        self.headless = headless
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    async def __aenter__(self) -> PlaywrightAxeEngine:
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise ConfigError(
                "Playwright unavailable. Install with: pip install 'a11y-scout[browser]' "
                "&& python -m playwright install chromium"
            ) from exc
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[BrowserPage]:
        from playwright.async_api import Error as PlaywrightError

        if self._context is None:
            raise RuntimeError("PlaywrightAxeEngine must be entered with 'async with' first")
        page = await self._context.new_page()
        try:
            try:
                await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                await page.add_script_tag(path=str(self.axe_script))
            except PlaywrightError as exc:
                raise FetchError(url, str(exc).splitlines()[0]) from exc
            yield BrowserPage(url=url, page=page)
        finally:
            await page.close()

    async def run(
        self,
        page: BrowserPage,
        rules: Optional[Sequence[str]] = None,
        selectors: Optional[Sequence[str]] = None,
    ) -> List[EngineViolation]:
        from playwright.async_api import Error as PlaywrightError

        options: dict[str, Any] = {}
        if rules:
            logger.info("Focusing on rules: %s", ", ".join(rules))
            options["runOnly"] = {"type": "rule", "values": list(rules)}
        context = {"include": [[s] for s in selectors]} if selectors else None
        try:
            payload = await page.page.evaluate(_AXE_RUN_JS, [context, options])
        except PlaywrightError as exc:
            raise FetchError(page.url, f"axe run failed: {exc}") from exc
        return parse_axe_results(payload or {})

    async def extract_context(self, page: BrowserPage, selector: str, depth: int) -> DomContext:
        from playwright.async_api import Error as PlaywrightError

        if page.soup is None:
            try:
                html = await page.page.content()
            except PlaywrightError as exc:
                raise FetchError(page.url, f"could not read rendered DOM: {exc}") from exc
            page.soup = BeautifulSoup(html, "html.parser")
        return extract_static_context(page.soup, selector, depth)
