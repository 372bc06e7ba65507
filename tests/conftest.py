# File: tests/conftest.py
from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest
from bs4 import BeautifulSoup

from a11y_scout.collector.context import extract_static_context
from a11y_scout.collector.models import DomContext, EngineNode, EngineViolation, Impact, RawViolationInstance
from a11y_scout.config import ScannerConfig
from a11y_scout.crawler.link_extractor import extract_links, extract_title
from a11y_scout.crawler.models import PageSnapshot
from a11y_scout.errors import FetchError, TrackerError
from a11y_scout.logger import LOGGER_NAME
from a11y_scout.tracker.models import TrackedIssue


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


# --------------------------------------------------------------------------- #
#                               Builders                                      #
# --------------------------------------------------------------------------- #


def make_instance(
    rule_id: str = "image-alt",
    html: str = '<img src="logo.png">',
    selector: str = "html > body > img",
    impact: Impact = Impact.CRITICAL,
    description: str = "Images must have alternate text",
) -> RawViolationInstance:
    return RawViolationInstance(
        rule_id=rule_id,
        impact=impact,
        description=description,
        help="Add an alt attribute",
        help_url=f"https://dequeuniversity.com/rules/axe/4.8/{rule_id}",
        wcag_tags=["wcag2a", "wcag111"],
        target_selectors=[selector],
        element_html=html,
        dom_context=DomContext(css_selector_path=selector, element_html=html),
    )


def missing_lang_violation() -> EngineViolation:
    return EngineViolation(
        rule_id="html-has-lang",
        impact="serious",
        description="Ensures every HTML document has a lang attribute",
        help="<html> element must have a lang attribute",
        help_url="https://dequeuniversity.com/rules/axe/4.8/html-has-lang",
        tags=["cat.language", "wcag2a", "wcag311"],
        nodes=[EngineNode(html="<html>", target=["html"], failure_summary="Fix any of the following")],
    )


# --------------------------------------------------------------------------- #
#                               Fakes                                         #
# --------------------------------------------------------------------------- #


class FakeFetcher:
    """Serves a static site: url -> html (or an int status, or an exception).

    ``redirects`` maps a requested URL to the URL that actually answers.
    """

    def __init__(self, site: Dict[str, object], redirects: Optional[Dict[str, str]] = None) -> None:
        self.site = site
        self.redirects = redirects or {}
        self.calls: List[str] = []

    async def fetch(self, url: str) -> PageSnapshot:
        self.calls.append(url)
        final_url = self.redirects.get(url, url)
        page = self.site.get(final_url, 404)
        if isinstance(page, Exception):
            raise page
        if isinstance(page, int):
            return PageSnapshot(url=url, status_code=page, final_url=final_url)
        soup = BeautifulSoup(str(page), "html.parser")
        return PageSnapshot(
            url=url,
            status_code=200,
            html=str(page),
            title=extract_title(soup),
            final_url=final_url,
            links=extract_links(soup, final_url),
        )


class FakeEngine:
    """In-memory accessibility engine.

    ``violations`` maps a page URL to the engine violations it reports; DOM
    context comes from ``html`` through the static extractor.
    """

    def __init__(
        self,
        violations: Optional[Dict[str, List[EngineViolation]]] = None,
        html: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.violations = violations or {}
        self.html = html or {}
        self.failing = set(failing)
        self.opened: List[str] = []
        self.run_args: List[Tuple[Optional[Sequence[str]], Optional[Sequence[str]]]] = []

    @asynccontextmanager
    async def open(self, url: str):
        if url in self.failing:
            raise FetchError(url, "navigation failed")
        self.opened.append(url)
        yield url

    async def run(self, page, rules=None, selectors=None) -> List[EngineViolation]:
        self.run_args.append((rules, selectors))
        return list(self.violations.get(page, []))

    async def extract_context(self, page, selector: str, depth: int) -> DomContext:
        return extract_static_context(self.html.get(page, ""), selector, depth)


class FakeTracker:
    """In-memory issue tracker with optional injected failure."""

    def __init__(
        self,
        issues: Iterable[TrackedIssue] = (),
        *,
        fail_on: Optional[str] = None,
        fail_after: int = 0,
    ) -> None:
        self.issues: Dict[int, TrackedIssue] = {i.id: i for i in issues}
        self.comments: Dict[int, List[str]] = defaultdict(list)
        self.calls: List[Tuple[str, int]] = []
        self.fail_on = fail_on
        self.fail_after = fail_after
        self._counts: Dict[str, int] = defaultdict(int)
        self._next_id = max(self.issues, default=0) + 1

    def _check(self, operation: str) -> None:
        if operation == self.fail_on:
            if self._counts[operation] >= self.fail_after:
                raise TrackerError(operation, "injected failure", 502)
        self._counts[operation] += 1

    def open_issues(self) -> List[TrackedIssue]:
        return [i for i in self.issues.values() if i.state == "open"]

    async def list_open_issues(self, label: str) -> List[TrackedIssue]:
        self._check("list_open_issues")
        return [dataclasses.replace(i) for i in self.open_issues() if label in i.labels]

    async def create_issue(self, title: str, body: str, labels: List[str]) -> Tuple[int, str]:
        self._check("create_issue")
        issue_id = self._next_id
        self._next_id += 1
        url = f"https://tracker.test/issues/{issue_id}"
        self.issues[issue_id] = TrackedIssue(issue_id, title, body, "open", url, list(labels))
        self.calls.append(("create_issue", issue_id))
        return issue_id, url

    async def update_issue(self, issue_id: int, body: str, labels: List[str]) -> None:
        self._check("update_issue")
        issue = self.issues[issue_id]
        issue.body = body
        issue.labels = list(labels)
        self.calls.append(("update_issue", issue_id))

    async def close_issue(self, issue_id: int) -> None:
        self._check("close_issue")
        self.issues[issue_id].state = "closed"
        self.calls.append(("close_issue", issue_id))

    async def add_comment(self, issue_id: int, body: str) -> None:
        self._check("add_comment")
        self.comments[issue_id].append(body)
        self.calls.append(("add_comment", issue_id))


# --------------------------------------------------------------------------- #
#                               Fixtures                                      #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def basic_config() -> ScannerConfig:
    """A small valid config with tracker settings and no network-bound engine."""
    return ScannerConfig(
        base_url="http://example.com",
        max_depth=2,
        max_pages=10,
        timeout=2.0,
        user_agent="TestAgent/1.0",
        rate_limit=50.0,
        respect_robots=False,
        tracker={"owner": "acme", "repo": "site", "token": "secret-token"},
    )


@pytest.fixture()
def fake_tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture(autouse=True)
def reset_project_logger():
    """CLI tests reconfigure the project logger; restore propagation for caplog."""
    yield
    lg = logging.getLogger(LOGGER_NAME)
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)
