# a11y_scout/tracker/models.py
"""
Data models for issues held by the external tracker.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from a11y_scout.tracker.marker import MarkerParse, parse_marker


class Action(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CLOSED = "closed"


@dataclass(slots=True)
class TrackedIssue:
    id: int
    title: str
    body: str = ""
    state: str = "open"
    url: str = ""
    labels: List[str] = field(default_factory=list)

    @property
    def marker(self) -> MarkerParse:
        return parse_marker(self.body)

    @property
    def embedded_signature(self) -> Optional[str]:
        return self.marker.signature


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    signature: str
    action: Action
    issue_id: int
    url: str = ""

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "action": self.action.value,
            "issue_id": self.issue_id,
            "url": self.url,
        }
