# === FILE: a11y_scout/tracker/reconcile.py ===
"""
Reconciliation: make the tracker's open issues match the current groups.

Per signature, across runs:

* no open issue carries it → create one (the body embeds the signature);
* an open issue carries it → overwrite the body and add an audit comment;
* an open issue carries a signature absent from this run → close it.

Identity lives only in the embedded signature block, so every run
re-derives the mapping from the tracker.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from a11y_scout.errors import ReconciliationError, TrackerError
from a11y_scout.signature.grouper import ViolationGroup
from a11y_scout.tracker import render
from a11y_scout.tracker.github import IssueTracker
from a11y_scout.tracker.marker import MarkerState
from a11y_scout.tracker.models import Action, ReconciliationResult, TrackedIssue

logger = logging.getLogger("A11yScout")

__all__ = ["AuditReport", "Reconciler", "audit_open_issues", "find_matching_issue"]


def find_matching_issue(
    group: ViolationGroup,
    issues: Iterable[TrackedIssue],
    claimed: Optional[Set[int]] = None,
) -> Optional[TrackedIssue]:
    """
    First open issue whose embedded signature equals the group's; issues
    without any signature block fall back to a rule-id-in-title match.
    Issues with a malformed block and issues already claimed never match.
    """
    claimed = claimed or set()
    for issue in issues:
        if issue.id in claimed:
            continue
        marker = issue.marker
        if marker.state is MarkerState.PRESENT:
            if marker.signature == group.signature:
                return issue
        elif marker.state is MarkerState.ABSENT and group.rule_id in issue.title:
            return issue
    return None


class Reconciler:
    """Drives create / update / close calls against an :class:`IssueTracker`."""

    def __init__(
        self,
        tracker: IssueTracker,
        *,
        label: str = "accessibility",
        close_resolved: bool = True,
    ) -> None:
        self.tracker = tracker
        self.label = label
        self.close_resolved = close_resolved
        self.last_closed: List[ReconciliationResult] = []
        self.anomalies: List[TrackedIssue] = []

    async def reconcile(self, groups: Sequence[ViolationGroup]) -> List[ReconciliationResult]:
        """
        Converge the tracker to ``groups`` and return one result per group.

        A tracker failure aborts the run with :class:`ReconciliationError`
        whose ``partial`` lists what had already been applied.
        """
        results: List[ReconciliationResult] = []
        self.last_closed = []
        self.anomalies = []
        try:
            open_issues = await self.tracker.list_open_issues(self.label)
            logger.info("Found %d open '%s' issue(s)", len(open_issues), self.label)
            for issue in open_issues:
                if issue.marker.state is MarkerState.MALFORMED:
                    logger.warning("Issue #%d has an unreadable signature block; leaving it untouched", issue.id)
                    self.anomalies.append(issue)

            claimed: Set[int] = set()
            for group in groups:
                issue = find_matching_issue(group, open_issues, claimed)
                if issue is None:
                    results.append(await self._create(group))
                else:
                    claimed.add(issue.id)
                    results.append(await self._update(issue, group))

            if self.close_resolved:
                current = {g.signature for g in groups}
                for issue in open_issues:
                    marker = issue.marker
                    if issue.id in claimed or marker.state is not MarkerState.PRESENT:
                        continue
                    if marker.signature not in current:
                        self.last_closed.append(await self._close(issue, marker.signature or ""))
        except TrackerError as exc:
            logger.error("Reconciliation aborted after %d change(s): %s", len(results) + len(self.last_closed), exc)
            raise ReconciliationError(exc, results + self.last_closed) from exc
        return results

    async def post_summary(
        self,
        issue_id: int,
        results: Sequence[ReconciliationResult],
        pages_scanned: int,
    ) -> None:
        """Comment a run summary on ``issue_id`` (typically the triggering pull request)."""
        body = render.summary_comment(results, pages_scanned, self.last_closed)
        await self.tracker.add_comment(issue_id, body)
        logger.info("Posted scan summary to #%d", issue_id)

    async def _create(self, group: ViolationGroup) -> ReconciliationResult:
        title = render.issue_title(group)
        issue_id, url = await self.tracker.create_issue(
            title, render.issue_body(group), render.issue_labels(group, self.label)
        )
        logger.info("Created issue #%d: %s", issue_id, title)
        return ReconciliationResult(group.signature, Action.CREATED, issue_id, url)

    async def _update(self, issue: TrackedIssue, group: ViolationGroup) -> ReconciliationResult:
        await self.tracker.update_issue(issue.id, render.issue_body(group), render.issue_labels(group, self.label))
        await self.tracker.add_comment(issue.id, render.update_comment(group))
        logger.info("Updated issue #%d", issue.id)
        return ReconciliationResult(group.signature, Action.UPDATED, issue.id, issue.url)

    async def _close(self, issue: TrackedIssue, signature: str) -> ReconciliationResult:
        await self.tracker.close_issue(issue.id)
        await self.tracker.add_comment(issue.id, render.resolved_comment())
        logger.info("Closed resolved issue #%d", issue.id)
        return ReconciliationResult(signature, Action.CLOSED, issue.id, issue.url)


@dataclass
class AuditReport:
    duplicates: Dict[str, List[int]] = field(default_factory=dict)
    malformed: List[int] = field(default_factory=list)
    untracked: List[int] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.duplicates or self.malformed)

    def to_dict(self) -> dict:
        return {
            "duplicates": {sig: list(ids) for sig, ids in self.duplicates.items()},
            "malformed": list(self.malformed),
            "untracked": list(self.untracked),
        }


def audit_open_issues(issues: Iterable[TrackedIssue]) -> AuditReport:
    """Signatures carried by more than one open issue, plus unreadable blocks."""
    by_signature: Dict[str, List[int]] = defaultdict(list)
    report = AuditReport()
    for issue in issues:
        marker = issue.marker
        if marker.state is MarkerState.PRESENT and marker.signature:
            by_signature[marker.signature].append(issue.id)
        elif marker.state is MarkerState.MALFORMED:
            report.malformed.append(issue.id)
        else:
            report.untracked.append(issue.id)
    report.duplicates = {sig: ids for sig, ids in by_signature.items() if len(ids) > 1}
    return report
