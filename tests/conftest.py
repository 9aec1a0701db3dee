"""
Shared pytest fixtures for adk-docs-mcp tests
"""
import asyncio

import pytest
from mcp.server.fastmcp import FastMCP

from doc_fetcher import DocFetcher

BASE_URL = "https://docs.example.com/"


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def sample_feed():
    """A small MkDocs search_index.json payload"""
    return {
        "config": {"lang": ["en"], "separator": "[\\s\\-]+", "pipeline": ["stopWordFilter"]},
        "docs": [
            {
                "location": "",
                "title": "Agent Development Kit",
                "text": "<p>Agent Development Kit (ADK) is a flexible framework for building agents.</p>",
            },
            {
                "location": "agents/",
                "title": "Agents",
                "text": "<p>An agent is a self-contained execution unit. Agents can use tools &amp; memory.</p>",
            },
            {
                "location": "agents/workflow-agents/sequential-agents/",
                "title": "Sequential agents",
                "text": "<p>The SequentialAgent runs its sub-agents in order.</p>",
            },
            {
                "location": "agents/workflow-agents/sequential-agents/#full-example-code-development-pipeline",
                "title": "Full Example: Code Development Pipeline",
                "text": "<p>This pipeline writes, reviews and refactors code using sub-agents.</p>",
            },
            {
                "location": "tools/",
                "title": "Tools",
                "text": "<p>Tools give agents capabilities such as search and code execution.</p>",
            },
            {
                "location": "sessions/state/",
                "title": "State",
                "text": "<p>Session state stores key value data for the duration of a conversation.</p>",
            },
        ],
    }


@pytest.fixture
def nav_html():
    """Home page with a primary navigation region"""
    return """
    <html><body>
      <header><a href="/">Home</a></header>
      <nav class="md-nav">
        <ul>
          <li><a href="./">Home</a></li>
          <li><a href="get-started/">Get Started</a></li>
          <li><a href="agents/">  Agents  </a></li>
          <li><a href="tools/">Tools</a></li>
          <li><a href="https://github.com/google/adk-python">Python ADK</a></li>
        </ul>
      </nav>
      <main><p>Welcome</p></main>
    </body></html>
    """


@pytest.fixture
def page_html():
    """A Material for MkDocs page"""
    return """
    <html>
      <head><title>Get Started</title><style>body { color: red; }</style></head>
      <body>
        <header class="md-header"><a href="/">Site</a></header>
        <div class="md-sidebar"><a href="agents/">Agents</a></div>
        <main>
          <article>
            <div class="md-content__inner">
              <h1>Get Started</h1>
              <p>Install the kit with <a href="https://pypi.org/project/google-adk/">pip</a>.</p>
              <ol><li>Create a project</li><li>Define an agent</li><li>Run it</li></ol>
              <pre><code>pip install google-adk</code></pre>
            </div>
          </article>
        </main>
        <footer>Copyright</footer>
        <script>console.log("x")</script>
      </body>
    </html>
    """


@pytest.fixture
def fake_site(base_url, nav_html, page_html):
    """url -> html map served by a fake raw fetcher"""
    return {
        base_url: nav_html,
        base_url + "get-started/": page_html,
    }


@pytest.fixture
def fetch_raw(mocker, fake_site):
    """Raw-fetch collaborator backed by fake_site; unknown URLs fail like a 404"""
    def _fetch(url):
        if url not in fake_site:
            raise RuntimeError(f"Docs HTTP 404 for {url}")
        return fake_site[url]
    return mocker.Mock(side_effect=_fetch)


@pytest.fixture
def fetch_feed(mocker, sample_feed):
    return mocker.Mock(return_value=sample_feed)


@pytest.fixture
def fetcher(base_url, fetch_raw, fetch_feed):
    """An initialized DocFetcher over the fake site"""
    return asyncio.run(DocFetcher.create(
        base_url=base_url,
        fetch_raw=fetch_raw,
        fetch_feed=fetch_feed,
        title_overrides={},
    ))


@pytest.fixture
def mcp_server():
    """Create a fresh FastMCP server instance for testing"""
    return FastMCP("test-adk-docs")


@pytest.fixture
def mcp_server_with_tools(mcp_server, fetcher):
    """Create a FastMCP server with default tools registered"""
    from defaults.tools import register_default_tools
    register_default_tools(mcp_server, fetcher)
    return mcp_server
