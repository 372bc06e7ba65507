# a11y_scout/crawler/robots.py
"""
robots.txt parsing and best-effort retrieval.

Only ``Disallow`` prefixes of the wildcard group are used by the crawler;
a robots.txt that cannot be fetched never stops a crawl.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse, urlunparse

from aiohttp import ClientError, ClientSession, ClientTimeout

logger = logging.getLogger("A11yScout")

__all__ = ("RobotsTxtRules", "fetch_robots_txt", "robots_url_for")


class RobotsTxtRules:
    """Parser for robots.txt user-agent groups and their directives."""

    def __init__(self, text: str) -> None:
        self.groups: List[Dict[str, Any]] = []
        self._parse(text)

    def disallowed_paths(self, user_agent: str = "*") -> List[str]:
        """Return the Disallow prefixes of every group naming ``user_agent``."""
        ua = user_agent.lower()
        paths: List[str] = []
        for group in self.groups:
            if ua not in group["agents"]:
                continue
            for directive, rule in group["directives"]:
                if directive == "disallow" and rule not in paths:
                    paths.append(rule)
        return paths

    def _parse(self, text: str) -> None:
        """Parse robots.txt content into user-agent groups and directives."""
        current: Optional[Dict[str, Any]] = None
        for line in text.splitlines():
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "user-agent":
                # consecutive User-agent lines share one group
                if current is None or current["directives"]:
                    current = {"agents": [], "directives": []}
                    self.groups.append(current)
                current["agents"].append(val.lower())
            elif key in ("allow", "disallow") and current is not None:
                # empty Disallow means allow all
                if key == "disallow" and not val:
                    continue
                current["directives"].append((key, val))


def robots_url_for(base_url: str) -> str:
    parsed = urlparse(base_url)
    return urlunparse((parsed.scheme, parsed.netloc, "/robots.txt", "", "", ""))


async def fetch_robots_txt(
    session: ClientSession,
    base_url: str,
    *,
    user_agent: str = "*",
    timeout: float = 10.0,
) -> List[str]:
    """
    Download robots.txt next to ``base_url`` and return its disallowed prefixes.

    Non-2xx responses, timeouts and transport errors yield an empty list.
    """
    robots_url = robots_url_for(base_url)
    try:
        async with session.get(robots_url, timeout=ClientTimeout(total=timeout)) as resp:
            if not 200 <= resp.status < 300:
                logger.warning("robots.txt %s -> HTTP %s, crawling unrestricted", robots_url, resp.status)
                return []
            text = await resp.text()
    except (ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
        logger.warning("Failed to fetch robots.txt %s: %s, crawling unrestricted", robots_url, exc)
        return []
    return RobotsTxtRules(text).disallowed_paths(user_agent)
