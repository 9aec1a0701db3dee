"""
In-memory full-text search over the documentation feed.
Indexes each document's title and body as separately weighted fields,
ranks with BM25, and understands a small query syntax:

    agent tools            any of the terms, in either field
    "session state"        exact phrase
    title:runner           term restricted to one field
    title:"Full Example"   phrase restricted to one field

Backslash escapes a character; use escape_query() on user-supplied text.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from html_text import clean_html
from models import SearchDoc, SearchHit


MAX_RESULTS = 10

FIELD_BOOSTS: Dict[str, float] = {"title": 10.0, "text": 1.0}

# BM25 parameters
K1 = 1.2
B = 0.75

# prefix matches ("agent" -> "agents") count for half
PREFIX_WEIGHT = 0.5


class QuerySyntaxError(ValueError):
    """Raised for queries the parser cannot interpret."""


# ---------------------------------------------------------------------------
# Tokenization
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"[a-z0-9]+")

_STOPWORDS = frozenset({
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "shall", "can", "need", "must",
    "i", "me", "my", "we", "our", "you", "your", "he", "she", "it",
    "they", "them", "their", "its", "this", "that", "these", "those",
    "what", "which", "who", "whom", "how", "when", "where", "why",
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "as",
    "into", "about", "between", "through", "during", "before", "after",
    "and", "but", "or", "nor", "not", "so", "if", "then", "than",
    "all", "each", "every", "both", "few", "more", "most", "some", "any",
    "no", "only", "same", "such", "too", "very", "just",
})

# characters with meaning in the query syntax
_SPECIAL_CHARS = set('\\":*^~+-()[]{}/?.|$!')


def _tokenize(text: str) -> List[str]:
    return _WORD_RE.findall(text.lower())


def escape_query(text: str) -> str:
    """Backslash-escape everything the query parser would otherwise interpret."""
    return "".join("\\" + ch if ch in _SPECIAL_CHARS else ch for ch in text)


# ---------------------------------------------------------------------------
# Query parsing
# ---------------------------------------------------------------------------

@dataclass
class Clause:
    tokens: List[str]
    fields: List[str]
    phrase: bool = False


def parse_query(query: str) -> List[Clause]:
    """
    Split a query string into clauses.

    Raises QuerySyntaxError for an unknown field qualifier, an unterminated
    quote or a trailing backslash.
    """
    clauses: List[Clause] = []
    all_fields = list(FIELD_BOOSTS)
    i, n = 0, len(query)

    while i < n:
        if query[i].isspace():
            i += 1
            continue

        fields = all_fields
        buf: List[str] = []
        phrase = False

        while i < n and not query[i].isspace():
            ch = query[i]
            if ch == "\\":
                if i + 1 >= n:
                    raise QuerySyntaxError("Query ends with a dangling escape")
                buf.append(query[i + 1])
                i += 2
            elif ch == ":" and buf and fields is all_fields:
                name = "".join(buf).lower()
                if name not in FIELD_BOOSTS:
                    raise QuerySyntaxError(f"Unknown field {name!r} in query")
                fields = [name]
                buf = []
                i += 1
            elif ch == '"':
                end, text = _read_phrase(query, i + 1)
                buf.append(text)
                phrase = True
                i = end
            else:
                buf.append(ch)
                i += 1

        raw = "".join(buf)
        tokens = _tokenize(raw)
        if phrase:
            if tokens:
                clauses.append(Clause(tokens=tokens, fields=fields, phrase=True))
        else:
            clauses.extend(Clause(tokens=[t], fields=fields) for t in tokens)

    # drop stopwords unless that would leave nothing to search for
    kept = [c for c in clauses if c.phrase or c.tokens[0] not in _STOPWORDS]
    return kept if kept else clauses


def _read_phrase(query: str, start: int) -> Tuple[int, str]:
    buf: List[str] = []
    i = start
    while i < len(query):
        ch = query[i]
        if ch == "\\":
            if i + 1 >= len(query):
                break
            buf.append(query[i + 1])
            i += 2
        elif ch == '"':
            return i + 1, "".join(buf)
        else:
            buf.append(ch)
            i += 1
    raise QuerySyntaxError("Unterminated quoted phrase in query")


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

class SearchIndex:
    """Write-once, in-memory BM25 index over SearchDoc records."""

    def __init__(self, docs: Iterable[SearchDoc]):
        self._docs: Dict[str, SearchDoc] = {}
        # field -> token -> ref -> positions
        self._postings: Dict[str, Dict[str, Dict[str, List[int]]]] = {f: {} for f in FIELD_BOOSTS}
        self._lengths: Dict[str, Dict[str, int]] = {f: {} for f in FIELD_BOOSTS}
        self._order: Dict[str, int] = {}

        for doc in docs:
            if doc.location in self._docs:
                continue
            self._order[doc.location] = len(self._docs)
            self._docs[doc.location] = doc
            self._add(doc)

        self._avg_length: Dict[str, float] = {}
        for field, lengths in self._lengths.items():
            self._avg_length[field] = (sum(lengths.values()) / len(lengths)) if lengths else 0.0

    @classmethod
    def from_feed(cls, payload: Dict[str, Any]) -> "SearchIndex":
        """Build from the MkDocs search_index.json payload."""
        records = payload.get("docs") if isinstance(payload, dict) else None
        if records is None:
            raise ValueError("Search feed has no 'docs' list")
        return cls(SearchDoc(**{k: r.get(k) or "" for k in ("location", "title", "text")}) for r in records)

    def _add(self, doc: SearchDoc) -> None:
        values = {"title": clean_html(doc.title), "text": clean_html(doc.text)}
        for field, value in values.items():
            tokens = _tokenize(value)
            self._lengths[field][doc.location] = len(tokens)
            postings = self._postings[field]
            for pos, tok in enumerate(tokens):
                postings.setdefault(tok, {}).setdefault(doc.location, []).append(pos)

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._docs)

    def __contains__(self, location: object) -> bool:
        return location in self._docs

    def get(self, location: str) -> Optional[SearchDoc]:
        return self._docs.get(location)

    @property
    def docs(self) -> Dict[str, SearchDoc]:
        """location -> SearchDoc, in feed order."""
        return self._docs

    # ------------------------------------------------------------------
    def _bm25(self, field: str, ref: str, tf: int, df: int) -> float:
        n_docs = len(self._docs)
        idf = math.log(1 + (n_docs - df + 0.5) / (df + 0.5))
        avg = self._avg_length[field] or 1.0
        norm = 1 - B + B * (self._lengths[field].get(ref, 0) / avg)
        return idf * (tf * (K1 + 1)) / (tf + K1 * norm)

    def _score_term(self, token: str, field: str, scores: Dict[str, float]) -> None:
        postings = self._postings[field]
        boost = FIELD_BOOSTS[field]
        exact = postings.get(token)
        if exact:
            for ref, positions in exact.items():
                scores[ref] = scores.get(ref, 0.0) + boost * self._bm25(field, ref, len(positions), len(exact))
        for tok, refs in postings.items():
            if tok != token and tok.startswith(token):
                for ref, positions in refs.items():
                    scores[ref] = scores.get(ref, 0.0) + PREFIX_WEIGHT * boost * self._bm25(field, ref, len(positions), len(refs))

    def _phrase_refs(self, tokens: List[str], field: str) -> List[str]:
        postings = self._postings[field]
        lists = [postings.get(t) for t in tokens]
        if not all(lists):
            return []
        candidates = set(lists[0])
        for refs in lists[1:]:
            candidates &= set(refs)
        matched = []
        for ref in candidates:
            starts = set(lists[0][ref])
            for offset, refs in enumerate(lists[1:], start=1):
                starts &= {p - offset for p in refs[ref]}
                if not starts:
                    break
            if starts:
                matched.append(ref)
        return matched

    def _score_phrase(self, tokens: List[str], field: str, scores: Dict[str, float]) -> None:
        postings = self._postings[field]
        boost = FIELD_BOOSTS[field]
        for ref in self._phrase_refs(tokens, field):
            total = 0.0
            for tok in tokens:
                refs = postings[tok]
                total += self._bm25(field, ref, len(refs[ref]), len(refs))
            scores[ref] = scores.get(ref, 0.0) + boost * total

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        """
        Return hits for *query*, best first.

        Clauses are OR-ed; each contributes BM25 x field boost for the
        documents it matches. Raises QuerySyntaxError for malformed queries.
        """
        clauses = parse_query(query)
        if not clauses or not self._docs:
            return []

        scores: Dict[str, float] = {}
        for clause in clauses:
            for field in clause.fields:
                if clause.phrase:
                    self._score_phrase(clause.tokens, field, scores)
                else:
                    self._score_term(clause.tokens[0], field, scores)

        ranked = sorted(scores.items(), key=lambda x: (-x[1], self._order[x[0]]))
        if limit is not None:
            ranked = ranked[:limit]
        return [SearchHit(ref=ref, score=round(score, 4)) for ref, score in ranked]
