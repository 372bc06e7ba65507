# File: a11y_scout/engine.py
"""a11y_scout.engine: orchestration of one scan run (crawl, test, group, reconcile)."""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Callable, Optional, Sequence

from a11y_scout.aggregator import ScanReport, TargetedReport, summarize
from a11y_scout.collector.browser import PlaywrightAxeEngine
from a11y_scout.collector.collector import TestCollector
from a11y_scout.collector.engine import AccessibilityEngine
from a11y_scout.config import ScannerConfig
from a11y_scout.crawler.crawler import FetchCapability, SiteCrawler
from a11y_scout.crawler.fetcher import build_session
from a11y_scout.errors import ConfigError, TrackerError
from a11y_scout.logger import logger
from a11y_scout.signature.grouper import group_violations
from a11y_scout.signature.normalize import looks_generated
from a11y_scout.ticket import Ticket
from a11y_scout.tracker.github import GitHubIssueTracker, IssueTracker
from a11y_scout.tracker.reconcile import AuditReport, Reconciler, audit_open_issues

__all__ = ["build_engine", "run_audit", "run_targeted_test", "start_scan"]


def build_engine(config: ScannerConfig) -> PlaywrightAxeEngine:
    """Default accessibility engine: headless Chromium with axe-core."""
    return PlaywrightAxeEngine(config.axe_script, timeout=config.timeout)


async def start_scan(
    config: ScannerConfig,
    *,
    engine: Optional[AccessibilityEngine] = None,
    tracker: Optional[IssueTracker] = None,
    reconcile: bool = True,
    fetcher: Optional[FetchCapability] = None,
    is_generated: Callable[[str], bool] = looks_generated,
    summary_issue: Optional[int] = None,
) -> ScanReport:
    """
    Run the whole pipeline and return the report.

    An injected ``engine`` or ``tracker`` is used as is; otherwise the
    browser engine and the GitHub tracker are built from ``config`` and
    closed when the run ends. Tracker settings are validated before the
    first request so a misconfigured run fails without touching the site.
    Reconciliation errors propagate as
    :class:`~a11y_scout.errors.ReconciliationError`. When no page could be
    tested the tracker is left alone, since an empty result would close
    every tracked issue. With ``summary_issue`` a run summary is commented
    on that issue or pull request.
    """
    if reconcile and tracker is None:
        config.require_tracker()
    owned_engine = build_engine(config) if engine is None else None

    async with AsyncExitStack() as stack:
        crawler = await stack.enter_async_context(SiteCrawler.from_config(config, fetcher=fetcher))
        pages = await crawler.crawl()

        if owned_engine is not None:
            engine = await stack.enter_async_context(owned_engine)
        collector = TestCollector(
            engine,
            context_depth=config.context_depth,
            rules=config.rules,
            selectors=config.selectors,
        )
        collected = await collector.collect(pages)

        groups = group_violations(collected.by_page, is_generated)
        logger.info(
            "Grouped %d violation(s) into %d unique issue(s)",
            collected.total_violations,
            len(groups),
        )

        failed_pages = crawler.failures + collected.failures
        report = ScanReport(groups=groups, pages=list(pages), failed_pages=failed_pages)

        if not reconcile:
            logger.info("Issue reconciliation disabled")
        elif collected.pages_tested == 0:
            logger.warning("No pages were tested; skipping issue reconciliation")
        else:
            if tracker is None:
                tracker_cfg = config.require_tracker()
                session = await stack.enter_async_context(build_session(config.user_agent))
                tracker = GitHubIssueTracker.from_config(session, tracker_cfg)
                label, close_resolved = tracker_cfg.label, tracker_cfg.close_resolved
            elif config.tracker is not None:
                label, close_resolved = config.tracker.label, config.tracker.close_resolved
            else:
                label, close_resolved = "accessibility", True
            reconciler = Reconciler(tracker, label=label, close_resolved=close_resolved)
            report.results = await reconciler.reconcile(groups)
            report.closed = list(reconciler.last_closed)
            if summary_issue is not None:
                try:
                    await reconciler.post_summary(summary_issue, report.results, collected.pages_tested)
                except TrackerError as exc:
                    logger.warning("Could not post the scan summary to #%d: %s", summary_issue, exc)

    report.summary = summarize(
        report.pages,
        report.failed_pages,
        collected.total_violations,
        report.groups,
        report.results,
        report.closed,
    )
    logger.info(
        "Scan complete: %d page(s), %d violation(s), %d unique",
        report.summary.pages_scanned,
        report.summary.total_violations,
        report.summary.unique_violations,
    )
    return report


async def run_audit(config: ScannerConfig, tracker: Optional[IssueTracker] = None) -> AuditReport:
    """List the tracker's open issues and report duplicate or unreadable signature blocks."""
    tracker_cfg = config.require_tracker() if tracker is None else config.tracker
    label = tracker_cfg.label if tracker_cfg is not None else "accessibility"
    async with AsyncExitStack() as stack:
        if tracker is None:
            session = await stack.enter_async_context(build_session(config.user_agent))
            tracker = GitHubIssueTracker.from_config(session, tracker_cfg)
        issues = await tracker.list_open_issues(label)
    report = audit_open_issues(issues)
    for signature, ids in report.duplicates.items():
        logger.warning("Signature %s is carried by issues %s", signature[:12], ", ".join(f"#{i}" for i in ids))
    for issue_id in report.malformed:
        logger.warning("Issue #%d has an unreadable signature block", issue_id)
    return report



async def run_targeted_test(
    config: ScannerConfig,
    urls: Sequence[str],
    *,
    rules: Optional[Sequence[str]] = None,
    selectors: Optional[Sequence[str]] = None,
    ticket: Optional[Ticket] = None,
    engine: Optional[AccessibilityEngine] = None,
) -> TargetedReport:
    """
    Test ``urls`` directly, without crawling or touching the tracker.

    ``rules`` and ``selectors`` default to the configured ones; the URLs of
    ``ticket`` are tested after the explicit ones.
    """
    targets = list(dict.fromkeys([*urls, *(ticket.urls if ticket else [])]))
    if not targets:
        raise ConfigError("no URLs to test")
    rules = list(rules) if rules else list(config.rules or [])
    selectors = list(selectors) if selectors else list(config.selectors or [])
    owned_engine = build_engine(config) if engine is None else None

    async with AsyncExitStack() as stack:
        if owned_engine is not None:
            engine = await stack.enter_async_context(owned_engine)
        collector = TestCollector(
            engine,
            context_depth=config.context_depth,
            rules=rules or None,
            selectors=selectors or None,
        )
        collected = await collector.collect_urls(targets)

    report = TargetedReport(
        urls=targets,
        rules=rules,
        by_page=collected.by_page,
        failed_pages=collected.failures,
        ticket=ticket,
    )
    logger.info(
        "Targeted test complete: %d URL(s), %d violation(s)",
        len(targets),
        collected.total_violations,
    )
    return report
