# a11y_scout/tracker/render.py
"""Issue title, body, labels and comments for a violation group."""
from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional, Sequence

from jinja2 import Environment, PackageLoader, StrictUndefined

from a11y_scout.signature.grouper import ViolationGroup
from a11y_scout.tracker.marker import render_marker
from a11y_scout.tracker.models import Action, ReconciliationResult

TITLE_DESCRIPTION_CHARS = 80


@lru_cache(maxsize=1)
def _env() -> Environment:
    env = Environment(
        loader=PackageLoader("a11y_scout", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["truncate_chars"] = lambda value, n: str(value)[:n]
    return env


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def issue_title(group: ViolationGroup) -> str:
    return f"[A11y] {group.rule_id}: {group.description[:TITLE_DESCRIPTION_CHARS]}"


def issue_labels(group: ViolationGroup, base_label: str = "accessibility") -> List[str]:
    labels = [base_label, f"a11y:{group.rule_id}", f"impact:{group.impact.value}"]
    labels.extend(tag for tag in group.wcag_tags if tag.startswith("wcag") and tag not in labels)
    return labels


def issue_body(group: ViolationGroup) -> str:
    return _env().get_template("issue_body.md").render(
        group=group, pages=group.pages, marker=render_marker(group.signature)
    )


def update_comment(group: ViolationGroup, timestamp: Optional[str] = None) -> str:
    return _env().get_template("update_comment.md").render(
        group=group, pages=group.pages, timestamp=timestamp or _now()
    )


def resolved_comment(timestamp: Optional[str] = None) -> str:
    return _env().get_template("resolved_comment.md").render(timestamp=timestamp or _now())


def summary_comment(
    results: Sequence[ReconciliationResult],
    pages_scanned: int,
    closed: Sequence[ReconciliationResult] = (),
) -> str:
    """Run summary posted to a pull request or tracking issue."""
    return _env().get_template("summary_comment.md").render(
        results=list(results),
        closed=list(closed),
        pages_scanned=pages_scanned,
        created=sum(1 for r in results if r.action is Action.CREATED),
        updated=sum(1 for r in results if r.action is Action.UPDATED),
    )
