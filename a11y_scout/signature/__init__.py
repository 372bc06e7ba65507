"""Violation fingerprinting and grouping."""
from a11y_scout.signature.grouper import (
    Occurrence,
    ViolationGroup,
    compute_signature,
    group_violations,
)
from a11y_scout.signature.normalize import GeneratedTokenRule, looks_generated

__all__ = [
    "GeneratedTokenRule",
    "Occurrence",
    "ViolationGroup",
    "compute_signature",
    "group_violations",
    "looks_generated",
]
