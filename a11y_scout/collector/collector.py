# === FILE: a11y_scout/collector/collector.py ===
"""Runs the accessibility engine over crawled pages and flattens the results."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from a11y_scout.collector.axe import wcag_tags
from a11y_scout.collector.engine import AccessibilityEngine
from a11y_scout.collector.models import DomContext, EngineViolation, Impact, RawViolationInstance
from a11y_scout.crawler.models import PageRecord
from a11y_scout.errors import FetchError

logger = logging.getLogger("A11yScout")

__all__ = ["CollectionResult", "TestCollector"]


@dataclass
class CollectionResult:
    """Violations per page URL plus the pages the engine could not test."""

    by_page: Dict[str, List[RawViolationInstance]] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)
    pages_tested: int = 0

    @property
    def total_violations(self) -> int:
        return sum(len(v) for v in self.by_page.values())


class TestCollector:
    """Invokes the engine page by page; a failing page is logged and skipped."""

    __test__ = False  # not a pytest class

    def __init__(
        self,
        engine: AccessibilityEngine,
        *,
        context_depth: int = 3,
        rules: Optional[Sequence[str]] = None,
        selectors: Optional[Sequence[str]] = None,
    ) -> None:
        self.engine = engine
        self.context_depth = context_depth
        self.rules = list(rules) if rules else None
        self.selectors = list(selectors) if selectors else None

    async def collect(self, pages: Iterable[PageRecord]) -> CollectionResult:
        return await self.collect_urls(page.url for page in pages)

    async def collect_urls(self, urls: Iterable[str]) -> CollectionResult:
        """Test each URL in turn; any error raised for one page skips only that page."""
        result = CollectionResult()
        for url in urls:
            logger.info("Testing: %s", url)
            try:
                instances = await self.test_page(url)
            except FetchError as exc:
                logger.warning("Error testing %s: %s", url, exc.reason)
                result.failures.append(url)
                continue
            except Exception as exc:
                logger.warning("Error testing %s: %s: %s", url, type(exc).__name__, exc)
                result.failures.append(url)
                continue
            result.pages_tested += 1
            if instances:
                result.by_page[url] = instances
                logger.info("  Found %d violation(s)", len(instances))
            else:
                logger.info("  No violations")
        logger.info("Completed tests: %d total violations found", result.total_violations)
        return result

    async def test_page(self, url: str) -> List[RawViolationInstance]:
        async with self.engine.open(url) as page:
            violations = await self.engine.run(page, self.rules, self.selectors)
            instances: List[RawViolationInstance] = []
            for violation in violations:
                for node in violation.nodes:
                    selector = node.target[0] if node.target else ""
                    context = await self.engine.extract_context(page, selector, self.context_depth)
                    instances.append(_instance(violation, node.html, node.target, context, node.failure_summary))
            return instances


def _instance(
    violation: EngineViolation,
    html: str,
    target: List[str],
    context: DomContext,
    failure_summary: Optional[str],
) -> RawViolationInstance:
    return RawViolationInstance(
        rule_id=violation.rule_id,
        impact=Impact.parse(violation.impact),
        description=violation.description,
        help=violation.help,
        help_url=violation.help_url,
        wcag_tags=wcag_tags(violation.tags),
        target_selectors=list(target),
        element_html=html,
        dom_context=context,
        failure_summary=failure_summary,
    )
