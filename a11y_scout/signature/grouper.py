# === FILE: a11y_scout/signature/grouper.py ===
"""
Collapses per-page violation instances into violation groups.

Two instances belong to the same group when their signatures match. The
signature hashes the rule, the element's tag, its semantic attributes, the
shape of its closest ancestors and the impact, after page-specific noise has
been stripped (see :mod:`a11y_scout.signature.normalize`).
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Sequence

from a11y_scout.collector.models import Impact, RawViolationInstance
from a11y_scout.signature.normalize import (
    collapse_html,
    looks_generated,
    parse_opening_tag,
    selector_pattern,
    semantic_attributes,
    strip_noise,
)

__all__ = [
    "Occurrence",
    "ViolationGroup",
    "compute_signature",
    "group_violations",
    "signature_fields",
]

FALLBACK_HTML_CHARS = 100


@dataclass(frozen=True, slots=True)
class Occurrence:
    url: str
    selector: str
    html: str


@dataclass(slots=True)
class ViolationGroup:
    """Every observed instance sharing one signature within a scan run."""

    signature: str
    rule_id: str
    impact: Impact
    description: str
    help: str
    help_url: str
    wcag_tags: List[str]
    example_html: str
    example_selector: str
    occurrences: List[Occurrence] = field(default_factory=list)
    total_occurrences: int = 0

    def add(self, occurrence: Occurrence) -> None:
        self.occurrences.append(occurrence)
        self.total_occurrences += 1

    @property
    def pages(self) -> Dict[str, int]:
        """Distinct URLs in first-seen order with their instance counts."""
        counts: Dict[str, int] = {}
        for occ in self.occurrences:
            counts[occ.url] = counts.get(occ.url, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "rule_id": self.rule_id,
            "impact": self.impact.value,
            "description": self.description,
            "help": self.help,
            "help_url": self.help_url,
            "wcag_tags": list(self.wcag_tags),
            "example_html": self.example_html,
            "example_selector": self.example_selector,
            "occurrences": [
                {"url": o.url, "selector": o.selector, "html": o.html} for o in self.occurrences
            ],
            "total_occurrences": self.total_occurrences,
            "pages_affected": len(self.pages),
        }


def _live_selector(instance: RawViolationInstance) -> str:
    if instance.dom_context.css_selector_path:
        return instance.dom_context.css_selector_path
    return instance.target_selectors[0] if instance.target_selectors else ""


def signature_fields(
    instance: RawViolationInstance,
    is_generated: Callable[[str], bool] = looks_generated,
) -> Dict[str, str]:
    """The canonical structure that gets hashed into a signature."""
    normalized = strip_noise(collapse_html(instance.element_html), is_generated)
    parsed = parse_opening_tag(normalized)
    if parsed is None:
        return {
            "ruleId": instance.rule_id,
            "html": normalized[:FALLBACK_HTML_CHARS],
        }
    tag_name, attributes = parsed
    return {
        "ruleId": instance.rule_id,
        "tagName": tag_name,
        "semanticAttributes": " ".join(semantic_attributes(attributes)),
        "selectorPattern": selector_pattern(_live_selector(instance)),
        "impact": instance.impact.value,
    }


def compute_signature(
    instance: RawViolationInstance,
    is_generated: Callable[[str], bool] = looks_generated,
) -> str:
    data = signature_fields(instance, is_generated)
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def group_violations(
    instances_by_page: Mapping[str, Sequence[RawViolationInstance]],
    is_generated: Callable[[str], bool] = looks_generated,
) -> List[ViolationGroup]:
    """
    Merge instances by signature and order the groups most severe first,
    then by descending occurrence count.

    Pages are visited in sorted URL order so the chosen examples and the tie
    order do not depend on the mapping's iteration order.
    """
    groups: Dict[str, ViolationGroup] = {}
    for url in sorted(instances_by_page):
        for instance in instances_by_page[url]:
            signature = compute_signature(instance, is_generated)
            group = groups.get(signature)
            if group is None:
                group = ViolationGroup(
                    signature=signature,
                    rule_id=instance.rule_id,
                    impact=instance.impact,
                    description=instance.description,
                    help=instance.help,
                    help_url=instance.help_url,
                    wcag_tags=list(instance.wcag_tags),
                    example_html=instance.element_html,
                    example_selector=_live_selector(instance),
                )
                groups[signature] = group
            group.add(Occurrence(url=url, selector=_live_selector(instance), html=instance.element_html))

    return sorted(groups.values(), key=lambda g: (g.impact.rank, -g.total_occurrences))
