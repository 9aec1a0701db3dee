"""Page content lookup backed by the search feed, plus snippet helpers."""
from __future__ import annotations

import logging
import re
from typing import Callable, Mapping, Optional, Tuple

from content_extractor import extract_content
from docs_client import resolve_url
from html_text import clean_html
from models import SearchDoc

log = logging.getLogger("adk-docs-mcp")

FETCH_FAILED_TEXT = "Unable to fetch documentation content."

SNIPPET_CONTEXT = 100
SNIPPET_HEAD = 200
ELLIPSIS = "..."


def normalize_location(location: str, base_url: str) -> str:
    """Strip the site root so absolute URLs and feed locations compare equal."""
    return location.replace(base_url, "", 1) if location.startswith(base_url) else location


def find_match(text: str, query: str) -> Optional[Tuple[int, int]]:
    """Span of the first case-insensitive occurrence of *query* in *text*, as offsets into *text*."""
    m = re.search(re.escape(query), text, re.IGNORECASE)
    return m.span() if m else None


def create_snippet(text: str, query: str) -> str:
    """
    Excerpt of *text* around the first case-insensitive occurrence of *query*.

    Up to 100 characters either side of the match, with "..." on each side
    that was clipped. Without a match, the first 200 characters plus "...".
    """
    if not text:
        return ""
    clean = clean_html(text)
    span = find_match(clean, query)
    if span is None:
        return clean[:SNIPPET_HEAD] + ELLIPSIS

    start = max(0, span[0] - SNIPPET_CONTEXT)
    end = min(len(clean), span[1] + SNIPPET_CONTEXT)
    snippet = clean[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(clean):
        snippet += ELLIPSIS
    return snippet


class DocumentCache:
    """
    Resolves a location to readable text.

    Locations known from the search feed are answered from memory; anything
    else is fetched, run through the content extractor and normalized.
    """

    def __init__(self, docs: Mapping[str, SearchDoc], base_url: str, fetch_raw: Callable[[str], str]):
        self._docs = docs
        self.base_url = base_url
        self._fetch_raw = fetch_raw

    def cached(self, location: str) -> str | None:
        doc = self._docs.get(normalize_location(location, self.base_url))
        if doc is not None and doc.text:
            return clean_html(doc.text)
        return None

    def fetch_doc_content(self, location: str) -> str:
        text = self.cached(location)
        if text is not None:
            log.info("Using cached content for: %s", location)
            return text

        url = resolve_url(self.base_url, location)
        log.info("Fetching documentation content from: %s", url)
        try:
            html = self._fetch_raw(url)
        except Exception as e:
            log.error("Failed to fetch doc content for %s: %s", location, e)
            return FETCH_FAILED_TEXT
        return clean_html(extract_content(html))
