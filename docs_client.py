from __future__ import annotations
import os, json, logging
from typing import Any, Dict, Optional
from pathlib import Path
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

# Load env from a local .env (works whether launched from the project dir or by an MCP host)
load_dotenv()
load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=False)

# ------------------------------------------------------------------------------
# Environment / Config
# ------------------------------------------------------------------------------

# Root of the documentation site; every relative location resolves against it
BASE_URL = os.getenv("ADK_DOCS_BASE_URL", "https://google.github.io/adk-docs/").rstrip("/") + "/"

# MkDocs search feed: {"config": {...}, "docs": [{location, title, text}, ...]}
SEARCH_INDEX_URL = os.getenv("ADK_DOCS_SEARCH_INDEX_URL", "") or urljoin(BASE_URL, "search/search_index.json")

TIMEOUT = float(os.getenv("ADK_DOCS_TIMEOUT_SECONDS", "20"))
USER_AGENT = os.getenv("ADK_DOCS_USER_AGENT", "adk-docs-mcp/0.1 (+https://github.com/google/adk-docs)")

# Titles the site navigation does not expose, mapped to their location.
# Override with ADK_DOCS_TITLE_OVERRIDES='{"Some Title": "path/to/page/#anchor"}'
DEFAULT_TITLE_OVERRIDES: Dict[str, str] = {
    "Full Example: Code Development Pipeline":
        "agents/workflow-agents/sequential-agents/#full-example-code-development-pipeline",
}

log = logging.getLogger("adk-docs-client")


def _load_title_overrides() -> Dict[str, str]:
    raw = os.getenv("ADK_DOCS_TITLE_OVERRIDES", "").strip()
    if not raw:
        return dict(DEFAULT_TITLE_OVERRIDES)
    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise RuntimeError(f"ADK_DOCS_TITLE_OVERRIDES is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise RuntimeError("ADK_DOCS_TITLE_OVERRIDES must be a JSON object of title -> location")
    return {str(k): str(v) for k, v in parsed.items()}


TITLE_OVERRIDES = _load_title_overrides()

session = requests.Session()
session.headers.update({
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
})


class DocsFetchError(RuntimeError):
    """Raised when a documentation URL cannot be retrieved."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def resolve_url(root: str, path: str) -> str:
    """Resolve a location (relative path or absolute URL) against the site root."""
    if path.startswith(("http://", "https://")):
        return path
    return urljoin(root.rstrip("/") + "/", path)

def _handle(r: requests.Response) -> requests.Response:
    """Uniform HTTP handler: non-2xx becomes DocsFetchError."""
    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        body = (r.text or "")[:500]
        raise DocsFetchError(r.url, f"Docs HTTP {r.status_code} for {r.url}: {body}", r.status_code) from e
    return r

def _get(url: str) -> requests.Response:
    log.info("Fetching URL: %s", url)
    try:
        r = session.get(url, timeout=TIMEOUT)
    except requests.RequestException as e:
        raise DocsFetchError(url, f"Docs request failed for {url}: {e}") from e
    return _handle(r)

# ------------------------------------------------------------------------------
# Raw fetch & bulk feed
# ------------------------------------------------------------------------------

def fetch_raw(url: str) -> str:
    """
    GET an absolute documentation URL and return the decoded body.
    """
    r = _get(url)
    log.debug("Fetched %d bytes from %s", len(r.content), url)
    return r.text

def fetch_search_index(url: Optional[str] = None) -> Dict[str, Any]:
    """
    GET the MkDocs search feed (search/search_index.json).
    Returns the parsed JSON payload; the caller builds the index from payload["docs"].
    """
    target = url or SEARCH_INDEX_URL
    r = _get(target)
    try:
        payload = r.json()
    except ValueError as e:
        raise DocsFetchError(target, f"Search index at {target} is not valid JSON") from e
    if not isinstance(payload, dict):
        raise DocsFetchError(target, f"Search index at {target} is not a JSON object")
    return payload
