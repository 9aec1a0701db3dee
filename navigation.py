"""Top-level table of contents scraped from the documentation home page."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from docs_client import resolve_url
from models import DocItem

log = logging.getLogger("adk-docs-mcp")

NAV_ANCHOR_SELECTOR = 'nav a, [role="navigation"] a'

# boilerplate entries ("Home", "Back to Home", ...) are dropped
EXCLUDED_TITLE_TEXT = "Home"


def parse_navigation(html: str, base_url: str) -> List[DocItem]:
    """
    Every anchor inside the page's navigation regions, in document order,
    as an absolute (title, url) pair.
    """
    soup = BeautifulSoup(html, "html.parser")
    items: List[DocItem] = []
    for anchor in soup.select(NAV_ANCHOR_SELECTOR):
        title = " ".join(anchor.get_text().split())
        if not title or EXCLUDED_TITLE_TEXT in title:
            continue
        href = anchor.get("href") or ""
        items.append(DocItem(title=title, url=resolve_url(base_url, href)))
        log.debug("Added document: %s", title)
    log.info("Found %d documents in structure", len(items))
    return items


class NavigationStructure:
    """Ordered navigation entries plus a lowercased-title lookup."""

    def __init__(self, items: List[DocItem]):
        self._items = tuple(items)
        self._title_map: Dict[str, DocItem] = {}
        for item in self._items:
            self._title_map.setdefault(item.title.lower(), item)

    @classmethod
    def build(cls, fetch_raw: Callable[[str], str], base_url: str) -> "NavigationStructure":
        html = fetch_raw(base_url)
        log.info("Parsing main documentation structure...")
        return cls(parse_navigation(html, base_url))

    @property
    def items(self) -> List[DocItem]:
        return list(self._items)

    @property
    def title_map(self) -> Dict[str, DocItem]:
        return dict(self._title_map)

    def get(self, title: str) -> Optional[DocItem]:
        return self._title_map.get(title.lower())

    def __len__(self) -> int:
        return len(self._items)
