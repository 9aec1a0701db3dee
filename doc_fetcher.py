"""
DocFetcher: the read-only documentation service behind the MCP tools.

Built once by the async factory ``DocFetcher.create()``, which loads the search
feed and the navigation page concurrently. After that every operation is a
pure read over immutable state, so concurrent requests need no locking.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import docs_client
from doc_cache import FETCH_FAILED_TEXT, SNIPPET_CONTEXT, ELLIPSIS, DocumentCache, create_snippet, find_match
from docs_search import MAX_RESULTS, QuerySyntaxError, SearchIndex, escape_query
from html_text import clean_html
from models import DocItem, DocumentResponse
from navigation import NavigationStructure

log = logging.getLogger("adk-docs-mcp")

# how many navigation pages the slow fallback will download and scan
FALLBACK_SCAN_LIMIT = 15


class FetcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class StartupError(RuntimeError):
    """The search index or navigation structure could not be built."""


class NotInitializedError(RuntimeError):
    """A request arrived before the fetcher reached READY."""


class DocumentLookupError(ValueError):
    """Base class for caller-input errors of get_document."""


class InvalidDocumentRequest(DocumentLookupError):
    pass


class DocumentNotFound(DocumentLookupError):
    def __init__(self, title: str):
        super().__init__(f'Document with title "{title}" not found')
        self.title = title


def _titles_match(candidate: str, wanted: str) -> bool:
    c, w = candidate.lower(), wanted.lower()
    return candidate == wanted or c == w or w in c or c in w


class DocFetcher:
    def __init__(
        self,
        base_url: Optional[str] = None,
        search_index_url: Optional[str] = None,
        fetch_raw: Optional[Callable[[str], str]] = None,
        fetch_feed: Optional[Callable[[str], Dict[str, Any]]] = None,
        title_overrides: Optional[Dict[str, str]] = None,
    ):
        self.base_url = (base_url or docs_client.BASE_URL).rstrip("/") + "/"
        if search_index_url is None:
            search_index_url = (docs_client.SEARCH_INDEX_URL if base_url is None
                                else docs_client.resolve_url(self.base_url, "search/search_index.json"))
        self.search_index_url = search_index_url
        self._fetch_raw = fetch_raw or docs_client.fetch_raw
        self._fetch_feed = fetch_feed or docs_client.fetch_search_index
        self.title_overrides = dict(docs_client.TITLE_OVERRIDES if title_overrides is None else title_overrides)

        self.state = FetcherState.UNINITIALIZED
        self._index: Optional[SearchIndex] = None
        self._navigation: Optional[NavigationStructure] = None
        self._cache: Optional[DocumentCache] = None

    @classmethod
    async def create(cls, **kwargs: Any) -> "DocFetcher":
        """Construct and initialize a fetcher; raises StartupError on failure."""
        fetcher = cls(**kwargs)
        await fetcher.init()
        return fetcher

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def _build_index(self) -> SearchIndex:
        log.info("Fetching search index from: %s", self.search_index_url)
        index = SearchIndex.from_feed(self._fetch_feed(self.search_index_url))
        log.info("Initialized search index with %d documents", len(index))
        return index

    def _build_navigation(self) -> NavigationStructure:
        log.info("Fetching main documentation from: %s", self.base_url)
        return NavigationStructure.build(self._fetch_raw, self.base_url)

    async def init(self) -> None:
        if self.state is not FetcherState.UNINITIALIZED:
            raise RuntimeError(f"DocFetcher.init() called in state {self.state.value}")
        self.state = FetcherState.INITIALIZING
        try:
            index, navigation = await asyncio.gather(
                asyncio.to_thread(self._build_index),
                asyncio.to_thread(self._build_navigation),
            )
        except Exception as e:
            self.state = FetcherState.FAILED
            log.error("Failed to initialize documentation: %s", e)
            raise StartupError(f"Failed to initialize documentation: {e}") from e

        self._index = index
        self._navigation = navigation
        self._cache = DocumentCache(index.docs, self.base_url, self._fetch_raw)
        self.state = FetcherState.READY
        log.info("Initialized doc structure with %d main sections", len(navigation))

    def _require_ready(self) -> None:
        if self.state is not FetcherState.READY:
            raise NotInitializedError(f"Documentation service is not ready (state: {self.state.value})")

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def get_structure(self) -> List[DocItem]:
        self._require_ready()
        return self._navigation.items

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def fetch_doc_content(self, location: str) -> str:
        self._require_ready()
        return await asyncio.to_thread(self._cache.fetch_doc_content, location)

    def _absolute(self, location: str) -> str:
        return docs_client.resolve_url(self.base_url, location)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str) -> List[DocItem]:
        """Ranked index search with snippets; degrades to fallback_search."""
        self._require_ready()
        log.info("Searching for: %s", query)

        if self._index is None:
            log.warning("Search index not initialized, falling back to basic search")
            return await self.fallback_search(query)

        try:
            hits = self._index.search(query, limit=MAX_RESULTS)
        except Exception as e:
            log.warning("Index search for %r failed (%s), falling back to basic search", query, e)
            return await self.fallback_search(query)

        log.info("Index search for %r returned %d results", query, len(hits))
        results: List[DocItem] = []
        for hit in hits:
            doc = self._index.get(hit.ref)
            if doc is None:
                continue
            results.append(DocItem(
                title=doc.title,
                url=self._absolute(doc.location),
                content=create_snippet(doc.text, query),
            ))

        if not results:
            return await self.fallback_search(query)
        return results

    async def fallback_search(self, query: str) -> List[DocItem]:
        """
        Slow path: title substring scan of the navigation, then a body scan
        of the first FALLBACK_SCAN_LIMIT navigation pages.
        """
        self._require_ready()
        needle = query.lower()
        results: List[DocItem] = []

        for item in self._navigation.title_map.values():
            if needle in item.title.lower():
                results.append(item)
                if len(results) >= MAX_RESULTS:
                    break

        if not results:
            log.info("No title matches found, searching through content...")
            for item in self._navigation.items[:FALLBACK_SCAN_LIMIT]:
                content = await self.fetch_doc_content(item.url)
                if content == FETCH_FAILED_TEXT:
                    continue
                span = find_match(content, query)
                if span is None:
                    continue
                start = max(0, span[0] - SNIPPET_CONTEXT)
                end = min(len(content), span[1] + SNIPPET_CONTEXT)
                snippet = clean_html(content[start:end]) + ELLIPSIS
                results.append(item.model_copy(update={"content": snippet}))
                if len(results) >= MAX_RESULTS:
                    break

        log.info("Fallback search for %r returned %d results", query, len(results))
        return results

    # ------------------------------------------------------------------
    # Title resolution
    # ------------------------------------------------------------------

    def lookup_title(self, title: str) -> Optional[DocItem]:
        """
        Navigation title map first, then a title-field phrase query against
        the index, then a plain substring scan over indexed titles.
        """
        self._require_ready()
        log.info("Looking for document with title: %s", title)

        exact = self._navigation.get(title)
        if exact is not None:
            return exact
        if self._index is None:
            return None

        try:
            hits = self._index.search(f'title:"{escape_query(title)}"', limit=1)
        except QuerySyntaxError as e:
            # only reachable if the index grammar rejects an escaped phrase
            log.warning("Title query for %r failed (%s), scanning titles", title, e)
            wanted = title.lower()
            for location, doc in self._index.docs.items():
                if wanted in doc.title.lower():
                    return DocItem(title=doc.title, url=self._absolute(location))
            return None

        if hits:
            doc = self._index.get(hits[0].ref)
            if doc is not None:
                return DocItem(title=doc.title, url=self._absolute(doc.location))
        return None

    async def _resolve_title(self, title: str) -> DocItem:
        for doc in await self.search(title):
            if doc.title and _titles_match(doc.title, title):
                log.info('Found matching document: "%s"', doc.title)
                return doc

        override = self.title_overrides.get(title)
        if override:
            url = self._absolute(override)
            log.info('Using configured location for "%s": %s', title, url)
            return DocItem(title=title, url=url)

        doc = self.lookup_title(title)
        if doc is not None:
            return doc
        raise DocumentNotFound(title)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def get_document(self, path: Optional[str] = None, title: Optional[str] = None) -> DocumentResponse:
        """Fetch one page by path/URL or by title. Exactly one must be given."""
        self._require_ready()
        path = (path or "").strip() or None
        title = (title or "").strip() or None
        if (path is None) == (title is None):
            raise InvalidDocumentRequest("Please provide either path OR title, but not both and not neither")

        if title is not None:
            doc = await self._resolve_title(title)
            doc_url, doc_title = doc.url, doc.title
        else:
            doc_url = path
            segments = [s for s in path.split("/") if s]
            doc_title = segments[-1] if segments else "Document"

        content = clean_html(await self.fetch_doc_content(doc_url))
        return DocumentResponse(title=doc_title, content=content, url=doc_url)
