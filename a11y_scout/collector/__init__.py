"""Test collection: engine contract, axe-core parsing and DOM context."""
from a11y_scout.collector.axe import parse_axe_results
from a11y_scout.collector.collector import CollectionResult, TestCollector
from a11y_scout.collector.context import extract_static_context
from a11y_scout.collector.engine import AccessibilityEngine
from a11y_scout.collector.models import (
    DomContext,
    EngineNode,
    EngineViolation,
    Impact,
    RawViolationInstance,
)

__all__ = [
    "AccessibilityEngine",
    "CollectionResult",
    "DomContext",
    "EngineNode",
    "EngineViolation",
    "Impact",
    "RawViolationInstance",
    "TestCollector",
    "extract_static_context",
    "parse_axe_results",
]
