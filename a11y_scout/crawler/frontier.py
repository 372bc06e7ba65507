# a11y_scout/crawler/frontier.py
"""
Crawl frontier: the pending-URL queue plus the set of URLs already seen.

Admission is a pure predicate (:func:`is_admissible`) over a
:class:`CrawlPolicy`; :class:`Frontier` only records what was offered so the
same normalized URL is never queued twice.
"""
from __future__ import annotations

import posixpath
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, Optional, Set, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse, urlunparse

from a11y_scout.crawler.models import CrawlTask

__all__ = ("CrawlPolicy", "Frontier", "is_admissible", "normalize_url")

_DEFAULT_PORTS = {"http": "80", "https": "443"}


def normalize_url(url: str) -> str:
    """
    Canonical form used for the visited set: lower-case scheme and host,
    default port dropped, dot segments resolved, query sorted, fragment removed.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port
    netloc = host
    if port is not None and _DEFAULT_PORTS.get(scheme) != str(port):
        netloc = f"{host}:{port}"
    if parsed.username:
        netloc = f"{parsed.username}@{netloc}"

    path = unquote(parsed.path or "/")
    norm = posixpath.normpath(path)
    if path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    norm = quote(norm, safe="/:@!$&'()*+,;=-._~")

    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return urlunparse((scheme, netloc, norm, "", query, ""))


@dataclass(frozen=True)
class CrawlPolicy:
    """Admission rules for one crawl."""

    max_depth: int
    allowed_host: Optional[str] = None
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    disallowed_paths: Tuple[str, ...] = ()

    def excluded(self, url: str) -> bool:
        """Foreign hosts, exclude patterns and robots.txt prefixes, checked before includes."""
        if self.allowed_host is not None and urlparse(url).hostname != self.allowed_host:
            return True
        if any(pattern in url for pattern in self.exclude_patterns):
            return True
        path = urlparse(url).path or "/"
        return any(path.startswith(prefix) for prefix in self.disallowed_paths)

    def included(self, url: str) -> bool:
        if not self.include_patterns:
            return True
        return any(pattern in url for pattern in self.include_patterns)


def is_admissible(url: str, depth: int, policy: CrawlPolicy, visited: Set[str]) -> bool:
    """Return True if ``url`` (already normalized) may be queued at ``depth``."""
    if url in visited:
        return False
    if depth > policy.max_depth:
        return False
    if policy.excluded(url):
        return False
    return policy.included(url)


@dataclass
class Frontier:
    """BFS queue with a seen-set; one instance per crawl."""

    policy: CrawlPolicy
    _queue: Deque[CrawlTask] = field(default_factory=deque, init=False)
    _seen: Set[str] = field(default_factory=set, init=False)
    rejected: int = field(default=0, init=False)

    def offer(self, url: str, depth: int) -> bool:
        """Normalize ``url`` and enqueue it if admissible; return whether it was queued."""
        try:
            norm = normalize_url(url)
        except ValueError:
            self.rejected += 1
            return False
        if not is_admissible(norm, depth, self.policy, self._seen):
            if norm not in self._seen:
                self.rejected += 1
            return False
        self._seen.add(norm)
        self._queue.append(CrawlTask(norm, depth))
        return True

    def offer_all(self, urls: Iterable[str], depth: int) -> int:
        return sum(1 for url in urls if self.offer(url, depth))

    def pop(self) -> Optional[CrawlTask]:
        return self._queue.popleft() if self._queue else None

    def seen(self, url: str) -> bool:
        return normalize_url(url) in self._seen

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._seen)

    def __len__(self) -> int:
        return len(self._queue)
