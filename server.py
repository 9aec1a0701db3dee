from __future__ import annotations
import os, sys, logging, asyncio

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from defaults.tools import register_default_tools
from doc_fetcher import DocFetcher, StartupError

# Log to STDERR only (stdio transport cannot receive stdout noise)
logging.basicConfig(
    stream=sys.stderr,
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("adk-docs-mcp")

TRANSPORTS = ("stdio", "sse", "streamable-http")


def build_server(fetcher: DocFetcher) -> FastMCP:
    """Create the FastMCP server and wire the documentation tools to *fetcher*."""
    mcp = FastMCP(
        "adk-docs",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "3000")),
    )
    register_default_tools(mcp, fetcher)

    # Only served by the HTTP transports
    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "state": fetcher.state.value})

    return mcp


def main() -> None:
    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower()
    if transport not in TRANSPORTS:
        log.error("Unknown MCP_TRANSPORT %r (expected one of %s)", transport, ", ".join(TRANSPORTS))
        sys.exit(2)

    try:
        fetcher = asyncio.run(DocFetcher.create())
    except StartupError:
        log.exception("Documentation service failed to start")
        sys.exit(1)

    mcp = build_server(fetcher)
    log.info("Serving ADK documentation over %s", transport)
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
