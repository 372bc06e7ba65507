# a11y_scout/collector/axe.py
"""Conversion of axe-core ``axe.run()`` results into engine violations."""
from __future__ import annotations

from typing import Any, List, Mapping

from a11y_scout.collector.models import EngineNode, EngineViolation

__all__ = ["parse_axe_results", "wcag_tags"]


def wcag_tags(tags: List[str]) -> List[str]:
    return [t for t in tags if t.startswith("wcag")]


def _target_list(raw: Any) -> List[str]:
    # axe reports iframe/shadow targets as nested lists; keep the innermost selector
    targets: List[str] = []
    for item in raw or []:
        if isinstance(item, list):
            if item:
                targets.append(str(item[-1]))
        else:
            targets.append(str(item))
    return targets


def parse_axe_results(payload: Mapping[str, Any]) -> List[EngineViolation]:
    """Read the ``violations`` array of an axe-core results object."""
    violations: List[EngineViolation] = []
    for item in payload.get("violations") or []:
        nodes = [
            EngineNode(
                html=str(node.get("html", "")),
                target=_target_list(node.get("target")),
                failure_summary=node.get("failureSummary"),
                impact=node.get("impact"),
            )
            for node in item.get("nodes") or []
        ]
        violations.append(
            EngineViolation(
                rule_id=str(item.get("id", "")),
                impact=item.get("impact"),
                description=str(item.get("description", "")),
                help=str(item.get("help", "")),
                help_url=str(item.get("helpUrl", "")),
                tags=[str(t) for t in item.get("tags") or []],
                nodes=nodes,
            )
        )
    return violations
