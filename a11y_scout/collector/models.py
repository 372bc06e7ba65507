# a11y_scout/collector/models.py
"""
Data models for violations reported by the accessibility engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Impact(str, Enum):
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> Impact:
        """Map an engine impact string onto the enum; anything else is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def rank(self) -> int:
        """0 for critical … 4 for unknown; lower sorts first."""
        return _IMPACT_ORDER[self]


_IMPACT_ORDER = {
    Impact.CRITICAL: 0,
    Impact.SERIOUS: 1,
    Impact.MODERATE: 2,
    Impact.MINOR: 3,
    Impact.UNKNOWN: 4,
}


@dataclass(frozen=True, slots=True)
class DomContext:
    """Where a violating element sits in its document."""

    css_selector_path: str
    element_html: str = ""
    xpath: Optional[str] = None
    parent_html: Optional[str] = None
    ancestor_html: List[str] = field(default_factory=list)
    sibling_html: List[str] = field(default_factory=list)
    context_depth: int = 0


@dataclass(frozen=True, slots=True)
class EngineNode:
    """One affected element in an engine result."""

    html: str
    target: List[str]
    failure_summary: Optional[str] = None
    impact: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EngineViolation:
    """A rule failure as reported by the engine, before per-node flattening."""

    rule_id: str
    impact: Optional[str]
    description: str
    help: str
    help_url: str
    tags: List[str]
    nodes: List[EngineNode]


@dataclass(frozen=True, slots=True)
class RawViolationInstance:
    """One (rule, element) pair on one page, with DOM context attached."""

    rule_id: str
    impact: Impact
    description: str
    help: str
    help_url: str
    wcag_tags: List[str]
    target_selectors: List[str]
    element_html: str
    dom_context: DomContext
    failure_summary: Optional[str] = None
