"""Main-content extraction for fetched documentation pages."""
from __future__ import annotations

import logging
import re
from typing import List

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from html_text import strip_tags

log = logging.getLogger("adk-docs-mcp")

NON_CONTENT_TAGS = ["script", "style", "iframe", "noscript", "nav", "header", "footer", "aside"]

NON_CONTENT_SELECTORS = [
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
    '[role="complementary"]',
    '[role="search"]',
    ".md-header",
    ".md-tabs",
    ".md-sidebar",
]

# Most specific first; MkDocs Material wraps the page body in .md-content__inner
MAIN_CONTENT_SELECTORS = [
    "main article .md-content__inner",
    '[role="main"]',
    "main",
    "article",
]

HEADINGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

BLOCK_TAGS = {
    "p", "div", "section", "blockquote", "table", "dl", "dt", "dd",
    "figure", "figcaption", "details", "summary", "hr", "li",
}

CELL_TAGS = ("td", "th")
CELL_SEPARATOR = " | "

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

_MANY_NEWLINES_RE = re.compile(r"\n{3,}")
_SPACES_RE = re.compile(r"[ \t]+")


def _render_list(node: Tag) -> str:
    ordered = node.name == "ol"
    parts: List[str] = ["\n"]
    position = 0
    for child in node.children:
        if isinstance(child, Tag) and child.name == "li":
            position += 1
            prefix = f"{position}. " if ordered else "• "
            parts.append(prefix + _render(child).strip() + "\n")
        else:
            parts.append(_render(child))
    return "".join(parts)


def _render(node) -> str:
    if isinstance(node, _SKIPPED_STRINGS):
        return ""
    if isinstance(node, NavigableString):
        return str(node)
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in HEADINGS:
        text = "".join(_render(c) for c in node.children).strip()
        return "\n\n" + "#" * HEADINGS[name] + " " + text + "\n"
    if name in ("ul", "ol"):
        return _render_list(node)
    if name == "pre":
        return "\n```\n" + node.get_text().strip("\n") + "\n```\n"
    if name == "code":
        # only reached outside pre; pre renders its code children as raw text
        return "\n```\n" + node.get_text() + "\n```\n"
    if name == "a":
        text = node.get_text().strip()
        href = node.get("href")
        if text and href:
            return f"{text} ({href})"
        return "".join(_render(c) for c in node.children)
    if name == "br":
        return "\n"
    if name == "tr":
        cells = [_render(c).strip() for c in node.children if isinstance(c, Tag) and c.name in CELL_TAGS]
        return CELL_SEPARATOR.join(cells) + "\n"

    inner = "".join(_render(c) for c in node.children)
    if name in BLOCK_TAGS:
        return inner + "\n"
    return inner


def cleanup_content(content: str) -> str:
    content = _MANY_NEWLINES_RE.sub("\n\n", content)
    content = _SPACES_RE.sub(" ", content)
    return content.strip()


def _strip_non_content(soup: BeautifulSoup) -> None:
    doomed = soup.find_all(NON_CONTENT_TAGS)
    for selector in NON_CONTENT_SELECTORS:
        doomed.extend(soup.select(selector))
    for tag in doomed:
        # nested regions go away with their ancestor
        if not tag.decomposed:
            tag.decompose()


def _main_region(soup: BeautifulSoup) -> Tag:
    for selector in MAIN_CONTENT_SELECTORS:
        region = soup.select_one(selector)
        if region is not None:
            return region
    return soup.body or soup


def extract_content(html: str) -> str:
    """
    Extract the readable main content of a documentation page.

    Headings become ``#`` lines, list items get ``• `` / ``N. `` prefixes,
    code is fenced and links are inlined as ``text (href)``. Markup that
    cannot be parsed degrades to the tag-stripped raw input.
    """
    if not html:
        return ""
    try:
        soup = BeautifulSoup(html, "html.parser")
        _strip_non_content(soup)
        content = _render(_main_region(soup))
    except Exception:
        log.warning("Could not parse page markup, falling back to raw text", exc_info=True)
        content = strip_tags(html)
    return cleanup_content(content)
