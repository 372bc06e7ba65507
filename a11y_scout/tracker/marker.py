# a11y_scout/tracker/marker.py
"""
Signature block embedded in issue bodies.

The block is an HTML comment so it stays invisible in rendered markdown::

    <!-- a11y-scout:signature v1 3f9c…e1 -->

Older issues carry a visible footer ``Signature: `<hex>```; it is read as
version 0. A block that starts with the marker prefix but cannot be read is
reported as malformed, never guessed at.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = ["MARKER_PREFIX", "MARKER_VERSION", "MarkerParse", "MarkerState", "parse_marker", "render_marker"]

MARKER_PREFIX = "a11y-scout:signature"
MARKER_VERSION = 1
SUPPORTED_VERSIONS = frozenset({MARKER_VERSION})

_BLOCK_RE = re.compile(r"<!--\s*" + re.escape(MARKER_PREFIX) + r"\s+(.*?)\s*-->", re.DOTALL)
_PAYLOAD_RE = re.compile(r"^v(\d+)\s+([0-9a-f]{32,64})$")
_LEGACY_RE = re.compile(r"Signature: `([^`]+)`")
_HEX_RE = re.compile(r"^[0-9a-f]{32,64}$")


class MarkerState(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class MarkerParse:
    state: MarkerState
    signature: Optional[str] = None
    version: Optional[int] = None
    raw: Optional[str] = None


def render_marker(signature: str) -> str:
    return f"<!-- {MARKER_PREFIX} v{MARKER_VERSION} {signature} -->"


def parse_marker(body: Optional[str]) -> MarkerParse:
    """Read the embedded signature out of an issue body."""
    body = body or ""
    block = _BLOCK_RE.search(body)
    if block is not None:
        payload = block.group(1).strip()
        match = _PAYLOAD_RE.match(payload)
        if match is None or int(match.group(1)) not in SUPPORTED_VERSIONS:
            return MarkerParse(MarkerState.MALFORMED, raw=payload)
        return MarkerParse(MarkerState.PRESENT, match.group(2), int(match.group(1)), payload)
    if MARKER_PREFIX in body:
        # prefix without a closed comment block
        return MarkerParse(MarkerState.MALFORMED, raw=body[body.index(MARKER_PREFIX):][:120])

    legacy = _LEGACY_RE.search(body)
    if legacy is not None:
        value = legacy.group(1).strip()
        if _HEX_RE.match(value):
            return MarkerParse(MarkerState.PRESENT, value, 0, value)
        return MarkerParse(MarkerState.MALFORMED, raw=value)
    return MarkerParse(MarkerState.ABSENT)
