# a11y_scout/ticket.py
"""
Ticket parsing for targeted tests.

An audit ticket (a Jira export, a Siteimprove finding pasted into markdown,
a GitHub issue body) names the pages to re-test and the WCAG success
criterion involved. :func:`parse_ticket` pulls those out with plain pattern
matching so a single ticket can be checked without crawling the site.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional, Union

__all__ = ["Ticket", "WcagCriterion", "parse_ticket", "read_ticket"]

_URL_RE = re.compile(r"https?://[^\s)<>\]\"']+")
_WCAG_RE = re.compile(r"Success criteria:\s*([\d.]+):\s*([^\n]+)", re.IGNORECASE)
_CONFORMANCE_RE = re.compile(r"Conformance:\s*([A-Z]+)", re.IGNORECASE)
_DIFFICULTY_RE = re.compile(r"Difficulty:\s*([^\n]+)", re.IGNORECASE)
_OCCURRENCES_RE = re.compile(r"Occurrences:\s*(\d+)", re.IGNORECASE)
_DESCRIPTION_RE = re.compile(r"Description\s*\n\s*\n(.*?)(?:\n\n|Learn more)", re.IGNORECASE | re.DOTALL)

# links into the tracking tools themselves are never test targets
IGNORED_URL_PARTS = ("atlassian.net", "siteimprove.com", "jira")


@dataclass(frozen=True)
class WcagCriterion:
    criterion: str
    name: str

    @property
    def tag(self) -> str:
        """axe-core tag for the criterion, e.g. ``1.4.3`` -> ``wcag143``."""
        return "wcag" + self.criterion.replace(".", "")


@dataclass
class Ticket:
    description: str
    urls: List[str] = field(default_factory=list)
    wcag: Optional[WcagCriterion] = None
    conformance: Optional[str] = None
    difficulty: Optional[str] = None
    occurrences: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.wcag is not None:
            data["wcag"]["tag"] = self.wcag.tag
        return data


def _target_urls(text: str) -> List[str]:
    urls: List[str] = []
    for match in _URL_RE.finditer(text):
        url = match.group(0).rstrip(".,;:")
        lowered = url.lower()
        if any(part in lowered for part in IGNORED_URL_PARTS):
            continue
        if url not in urls:
            urls.append(url)
    return urls


def _description(text: str) -> str:
    match = _DESCRIPTION_RE.search(text)
    if match:
        return match.group(1).strip()
    # no "Description" heading: lines 3-5 usually hold the summary
    lines = [line.strip() for line in text.splitlines()[2:5] if line.strip()]
    return " ".join(lines)


def parse_ticket(text: str) -> Ticket:
    """Extract target URLs, WCAG criterion, conformance level and metadata."""
    wcag = _WCAG_RE.search(text)
    conformance = _CONFORMANCE_RE.search(text)
    difficulty = _DIFFICULTY_RE.search(text)
    occurrences = _OCCURRENCES_RE.search(text)
    return Ticket(
        description=_description(text),
        urls=_target_urls(text),
        wcag=WcagCriterion(wcag.group(1).rstrip("."), wcag.group(2).strip()) if wcag else None,
        conformance=conformance.group(1).upper() if conformance else None,
        difficulty=difficulty.group(1).strip() if difficulty else None,
        occurrences=int(occurrences.group(1)) if occurrences else None,
    )


def read_ticket(path: Union[str, Path]) -> Ticket:
    return parse_ticket(Path(path).read_text(encoding="utf-8"))
