from typing import Optional

from typing_extensions import Annotated
from pydantic import Field
from mcp.server.fastmcp import FastMCP

from defaults.schemas import (
    DocSection,
    DocStructureResponse,
    GetDocumentResponse,
    SearchDocsResponse,
    SearchResult,
)
from doc_fetcher import DocFetcher


def register_default_tools(mcp: FastMCP, fetcher: DocFetcher):
    """Register the documentation tools against an initialized DocFetcher"""

    # Track default tools for list_tools() function
    if not hasattr(mcp, '_default_tools_registry'):
        mcp._default_tools_registry = []

    # ------------------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------------------

    @mcp.tool(name="getDocStructure")
    def get_doc_structure() -> DocStructureResponse:
        """Get the overall structure of the ADK documentation."""
        return DocStructureResponse(sections=[
            DocSection(title=item.title, url=item.url) for item in fetcher.get_structure()
        ])

    mcp._default_tools_registry.append({
        "name": "getDocStructure",
        "description": "Get the overall structure of the ADK documentation.",
        "category": "structure"
    })

    @mcp.tool(name="searchDocs")
    async def search_docs(
        query: Annotated[str, Field(description="The search query", min_length=1)],
    ) -> SearchDocsResponse:
        """Search the ADK documentation for specific topics or keywords."""
        results = await fetcher.search(query)
        return SearchDocsResponse(results=[
            SearchResult(title=r.title, url=r.url, content=r.content or "") for r in results
        ])

    mcp._default_tools_registry.append({
        "name": "searchDocs",
        "description": "Search the ADK documentation for specific topics or keywords.",
        "category": "search"
    })

    @mcp.tool(name="getDocument")
    async def get_document(
        path: Annotated[Optional[str], Field(description="The path or URL of the document")] = None,
        title: Annotated[Optional[str], Field(description="The title of the document")] = None,
    ) -> GetDocumentResponse:
        """Get the content of a specific ADK documentation page by path or title (exactly one)."""
        doc = await fetcher.get_document(path=path, title=title)
        return GetDocumentResponse(title=doc.title, content=doc.content, url=doc.url)

    mcp._default_tools_registry.append({
        "name": "getDocument",
        "description": "Get the content of a specific ADK documentation page by path or title.",
        "category": "documents"
    })
