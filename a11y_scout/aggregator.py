# File: a11y_scout/aggregator.py
"""a11y_scout.aggregator: scan summary and report assembled from one run."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from a11y_scout.collector.models import Impact, RawViolationInstance
from a11y_scout.crawler.models import PageRecord
from a11y_scout.signature.grouper import ViolationGroup
from a11y_scout.ticket import Ticket
from a11y_scout.tracker.models import Action, ReconciliationResult


@dataclass(slots=True)
class ScanSummary:
    """Counts reported at the end of a run."""

    pages_scanned: int = 0
    pages_failed: int = 0
    total_violations: int = 0
    unique_violations: int = 0
    issues_created: int = 0
    issues_updated: int = 0
    issues_closed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(slots=True)
class ScanReport:
    """Everything a run produced, in presentation order."""

    summary: ScanSummary = field(default_factory=ScanSummary)
    groups: List[ViolationGroup] = field(default_factory=list)
    pages: List[PageRecord] = field(default_factory=list)
    results: List[ReconciliationResult] = field(default_factory=list)
    closed: List[ReconciliationResult] = field(default_factory=list)
    failed_pages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.as_dict(),
            "pages": [asdict(p) for p in self.pages],
            "failed_pages": list(self.failed_pages),
            "groups": [g.to_dict() for g in self.groups],
            "issues": [r.to_dict() for r in self.results + self.closed],
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def summarize(
    pages: Sequence[PageRecord],
    failed_pages: Sequence[str],
    total_violations: int,
    groups: Sequence[ViolationGroup],
    results: Sequence[ReconciliationResult] = (),
    closed: Sequence[ReconciliationResult] = (),
) -> ScanSummary:
    """Build the run summary from the pipeline's intermediate outputs."""
    return ScanSummary(
        pages_scanned=len(pages),
        pages_failed=len(failed_pages),
        total_violations=total_violations,
        unique_violations=len(groups),
        issues_created=sum(1 for r in results if r.action is Action.CREATED),
        issues_updated=sum(1 for r in results if r.action is Action.UPDATED),
        issues_closed=len(closed),
    )


@dataclass(slots=True)
class TargetedReport:
    """Violations found on an explicit list of URLs, optionally taken from a ticket."""

    urls: List[str] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    by_page: Dict[str, List[RawViolationInstance]] = field(default_factory=dict)
    failed_pages: List[str] = field(default_factory=list)
    ticket: Optional[Ticket] = None

    @property
    def violations(self) -> List[RawViolationInstance]:
        return [inst for url in self.urls for inst in self.by_page.get(url, [])]

    def impact_counts(self) -> Dict[str, int]:
        counts = {impact.value: 0 for impact in Impact}
        for inst in self.violations:
            counts[inst.impact.value] += 1
        return counts

    def summary(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "urls_tested": len(self.urls) - len(self.failed_pages),
            "pages_failed": len(self.failed_pages),
            "total_violations": len(self.violations),
            **self.impact_counts(),
        }
        if self.ticket is not None and self.ticket.wcag is not None:
            tag = self.ticket.wcag.tag
            data["criterion_violations"] = sum(1 for inst in self.violations if tag in inst.wcag_tags)
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary(),
            "urls": list(self.urls),
            "rules": list(self.rules),
            "failed_pages": list(self.failed_pages),
            "ticket": self.ticket.to_dict() if self.ticket is not None else None,
            "violations": [
                {
                    "url": url,
                    "rule_id": inst.rule_id,
                    "impact": inst.impact.value,
                    "description": inst.description,
                    "help": inst.help,
                    "help_url": inst.help_url,
                    "wcag_tags": list(inst.wcag_tags),
                    "selector": inst.dom_context.css_selector_path,
                    "xpath": inst.dom_context.xpath,
                    "html": inst.element_html,
                    "parent_html": inst.dom_context.parent_html,
                }
                for url in self.urls
                for inst in self.by_page.get(url, [])
            ],
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
