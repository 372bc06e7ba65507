# a11y_scout/signature/normalize.py
"""
Normalization steps applied to a violating element before fingerprinting.

Each step is a small named function so it can be tested on its own; the
"looks machine-generated" heuristic is a configurable predicate object.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

__all__ = [
    "GeneratedTokenRule",
    "collapse_html",
    "looks_generated",
    "parse_opening_tag",
    "selector_pattern",
    "semantic_attributes",
    "strip_noise",
]

_WS_RE = re.compile(r"\s+")
_ID_RE = re.compile(r'(?<=\s)id="[^"]*"')
_ARIA_CONTROLS_RE = re.compile(r'(?<=\s)aria-controls="[^"]*"')
_DATA_ATTR_RE = re.compile(r'\sdata-[a-z0-9_.:-]+(?:="[^"]*")?')
_CLASS_RE = re.compile(r'\sclass="([^"]*)"')
_OPENING_TAG_RE = re.compile(r"^<([a-z][a-z0-9-]*)([^>]*)>")
_SEMANTIC_ATTR_RE = re.compile(r'(?<![\w-])(?:role|aria-[a-z-]+|type|name|placeholder)="[^"]*"')
_POSITIONAL_RE = re.compile(r":nth-(?:of-type|child)\(\s*\d+\s*\)")
_ID_SELECTOR_RE = re.compile(r"#[^\s>.:\[\]#\"']+")

SELECTOR_KEEP_SEGMENTS = 3


@dataclass(frozen=True)
class GeneratedTokenRule:
    """Class token looks generated when it has ``min_digits`` consecutive
    digits or a run of ``min_hex`` hex characters."""

    min_digits: int = 3
    min_hex: int = 6

    def __post_init__(self) -> None:
        object.__setattr__(self, "_digits", re.compile(r"\d{%d,}" % self.min_digits))
        object.__setattr__(self, "_hex", re.compile(r"[a-f0-9]{%d,}" % self.min_hex))

    def __call__(self, token: str) -> bool:
        return bool(self._digits.search(token) or self._hex.search(token))  # type: ignore[attr-defined]


looks_generated: Callable[[str], bool] = GeneratedTokenRule()


def collapse_html(html: str) -> str:
    """Collapse whitespace runs and lower-case."""
    return _WS_RE.sub(" ", html).strip().lower()


def strip_noise(html: str, is_generated: Callable[[str], bool] = looks_generated) -> str:
    """
    Blank id and aria-controls values, drop data-* attributes and remove
    generated class tokens (the whole class attribute goes if nothing is left).
    """
    html = _ARIA_CONTROLS_RE.sub('aria-controls=""', html)
    html = _ID_RE.sub('id=""', html)
    html = _DATA_ATTR_RE.sub("", html)

    def _clean_classes(match: re.Match[str]) -> str:
        kept = [c for c in match.group(1).split(" ") if c and not is_generated(c)]
        return f' class="{" ".join(kept)}"' if kept else ""

    return _CLASS_RE.sub(_clean_classes, html)


def parse_opening_tag(html: str) -> Optional[Tuple[str, str]]:
    """Return ``(tag_name, attribute_string)`` of the leading tag, or None."""
    match = _OPENING_TAG_RE.match(html)
    if match is None:
        return None
    return match.group(1), match.group(2)


def semantic_attributes(attributes: str) -> List[str]:
    """role, aria-*, type, name and placeholder, sorted."""
    return sorted(m.group(0) for m in _SEMANTIC_ATTR_RE.finditer(attributes))


def selector_pattern(css_selector: str, keep: int = SELECTOR_KEEP_SEGMENTS) -> str:
    """Drop positional qualifiers and ids, keep the last ``keep`` path segments."""
    cleaned = _POSITIONAL_RE.sub("", css_selector)
    cleaned = _ID_SELECTOR_RE.sub("", cleaned)
    segments = [seg.strip() for seg in cleaned.split(">")]
    segments = [seg for seg in segments if seg]
    return " > ".join(segments[-keep:]) if keep > 0 else ""
