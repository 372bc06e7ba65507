# a11y_scout/crawler/link_extractor.py
"""
Link and title extraction for fetched pages.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag


def extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""


def extract_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    """
    Extract same-host HTTP(S) links from a parsed page.

    Fragments are stripped and duplicates removed with first-seen order kept;
    mailto:, javascript: and tel: hrefs are ignored.
    """
    base_host = urlparse(page_url).hostname
    seen: set[str] = set()
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith(("mailto:", "javascript:", "tel:")):
            continue
        try:
            absolute, _ = urldefrag(urljoin(page_url, raw))
            parsed = urlparse(absolute)
            host = parsed.hostname
        except ValueError:
            continue
        if parsed.scheme in ("http", "https") and host == base_host and absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links
