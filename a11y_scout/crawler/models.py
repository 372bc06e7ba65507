# a11y_scout/crawler/models.py
"""
Data models for the a11y-scout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class CrawlTask:
    """A URL waiting in the frontier, with its link distance from the root."""

    url: str
    depth: int


@dataclass(frozen=True, slots=True)
class PageRecord:
    """A page that was fetched successfully (status 200-399)."""

    url: str
    depth: int
    status_code: int
    title: str = ""


@dataclass(slots=True)
class PageSnapshot:
    """Fetched page as returned by the fetch capability."""

    url: str
    status_code: int
    html: str = ""
    title: str = ""
    final_url: Optional[str] = None
    links: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400
