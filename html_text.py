"""
Plain-text normalization for HTML fragments, entity-encoded text and
JSON-escaped strings coming out of the search feed or fetched pages.
"""
from __future__ import annotations

import re
from typing import Optional

_TAG_RE = re.compile(r"<[^>]+>")
_ANY_ENTITY_RE = re.compile(r"&[a-zA-Z0-9#]+;")
_WS_RE = re.compile(r"\s+")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")

ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&rsquo;": "'",
    "&lsquo;": "'",
    "&rdquo;": '"',
    "&ldquo;": '"',
    "&ndash;": "-",
    "&mdash;": "—",
    "&hellip;": "...",
}
_KNOWN_ENTITY_RE = re.compile("|".join(re.escape(e) for e in ENTITIES))

_BACKSLASH_ESCAPES = {"\\n": "\n", "\\t": "\t", "\\r": "\r"}
_BACKSLASH_RE = re.compile(r"\\[ntr]")


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


def _decode_unicode_escape(match: re.Match) -> str:
    return chr(int(match.group(1), 16))


def _clean_once(text: str) -> str:
    text = strip_tags(text)
    text = _KNOWN_ENTITY_RE.sub(lambda m: ENTITIES[m.group(0)], text)
    # anything left over is unknown; never let it through as markup
    text = _ANY_ENTITY_RE.sub(" ", text)
    text = _BACKSLASH_RE.sub(lambda m: _BACKSLASH_ESCAPES[m.group(0)], text)
    text = _UNICODE_ESCAPE_RE.sub(_decode_unicode_escape, text)
    text = _WS_RE.sub(" ", text)
    return text.strip()


def clean_html(text: Optional[str]) -> str:
    """
    Turn HTML-ish text into a single line of readable plain text.

    Decoding can surface new markup (``&lt;b&gt;`` becomes ``<b>``), so the
    pipeline runs until the output stops changing. Each pass that changes the
    text either shortens it or only rewrites whitespace, so this terminates.
    """
    if not text:
        return ""
    current = text
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
