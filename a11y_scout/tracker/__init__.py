"""Issue tracker integration: signature markers, GitHub client, reconciliation."""
from a11y_scout.tracker.github import GitHubIssueTracker, IssueTracker
from a11y_scout.tracker.marker import MarkerState, parse_marker, render_marker
from a11y_scout.tracker.models import Action, ReconciliationResult, TrackedIssue
from a11y_scout.tracker.reconcile import AuditReport, Reconciler, audit_open_issues

__all__ = [
    "Action",
    "AuditReport",
    "GitHubIssueTracker",
    "IssueTracker",
    "MarkerState",
    "ReconciliationResult",
    "Reconciler",
    "TrackedIssue",
    "audit_open_issues",
    "parse_marker",
    "render_marker",
]
