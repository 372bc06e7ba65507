# a11y_scout/collector/context.py
"""DOM-context extraction over static HTML.

Given the markup of a rendered page and the selector the engine reported for
a violating node, capture what a developer needs to find the element in
source: its outer HTML, parent and ancestors, a few siblings, a CSS path and
an XPath.
"""
from __future__ import annotations

from typing import List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from a11y_scout.collector.models import DomContext

__all__ = ["css_path", "extract_static_context", "xpath_for"]

MAX_SIBLINGS = 5


def _element_children(tag: Tag) -> List[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def _nth_of_type(tag: Tag) -> int:
    nth = 1
    for sibling in tag.previous_siblings:
        if isinstance(sibling, Tag) and sibling.name == tag.name:
            nth += 1
    return nth


def _parent_element(tag: Tag) -> Optional[Tag]:
    parent = tag.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def css_path(tag: Tag) -> str:
    """``html > body > div:nth-of-type(2) > a``; stops at the nearest id."""
    path: List[str] = []
    current: Optional[Tag] = tag
    while current is not None:
        selector = current.name
        el_id = current.get("id")
        if el_id:
            path.insert(0, f"{selector}#{el_id}")
            break
        nth = _nth_of_type(current)
        if nth > 1:
            selector += f":nth-of-type({nth})"
        path.insert(0, selector)
        current = _parent_element(current)
    return " > ".join(path)


def xpath_for(tag: Tag) -> str:
    el_id = tag.get("id")
    if el_id:
        return f'//*[@id="{el_id}"]'
    parts: List[str] = []
    current: Optional[Tag] = tag
    while current is not None:
        index = _nth_of_type(current) - 1
        parts.insert(0, f"{current.name}[{index + 1}]" if index > 0 else current.name)
        current = _parent_element(current)
    return "/" + "/".join(parts) if parts else ""


def extract_static_context(
    document: Union[BeautifulSoup, str],
    selector: str,
    depth: int = 3,
) -> DomContext:
    """Build a :class:`DomContext` for the first element matching ``selector``."""
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document, "html.parser")
    try:
        element = soup.select_one(selector) if selector else None
    except SelectorSyntaxError:
        element = None
    if element is None:
        return DomContext(css_selector_path=selector, element_html="Element not found in DOM")

    ancestors: List[str] = []
    current = _parent_element(element)
    while current is not None and len(ancestors) < depth:
        ancestors.append(str(current))
        current = _parent_element(current)

    parent = _parent_element(element)
    siblings: List[str] = []
    if parent is not None:
        siblings = [str(child) for child in _element_children(parent) if child is not element]

    return DomContext(
        css_selector_path=css_path(element),
        element_html=str(element),
        xpath=xpath_for(element),
        parent_html=str(parent) if parent is not None else None,
        ancestor_html=ancestors,
        sibling_html=siblings[:MAX_SIBLINGS],
        context_depth=depth,
    )
