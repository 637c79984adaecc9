"""MCP server exposing the documentation index as resources and a search tool."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from bundocs import __version__
from bundocs.config import DEFAULT_SEARCH_LIMIT, AppConfig
from bundocs.errors import InvalidQueryError
from bundocs.index.builder import DocumentIndex
from bundocs.index.resolver import ResourceResolver
from bundocs.index.search import Searcher

LOGGER = logging.getLogger(__name__)

SERVER_NAME = "bundocs"
GREP_TOOL_NAME = "grep_bun_docs"

INSTRUCTIONS = """This MCP server provides access to Bun documentation.

## How to use:
- Browse the documentation tree starting from the root
- Each entry carries its section and summary as description
- Read any documentation page to get its full markdown content
- Use the grep_bun_docs tool to search through documentation content

## Tips:
- Read the documents to find out whether Bun has a better built-in before reaching for a Node API
- Use grep_bun_docs to quickly find relevant pages before reading specific files
- Check 'api/' for specific Bun APIs
- Look in 'guides/' for practical examples and tutorials

## Search Strategy:
- If grep_bun_docs doesn't find what you need, browse the resources
- Start from the root to understand the documentation organization
- Key directories: 'api/' (APIs), 'bundler/' (build tools, macros), 'guides/' (examples), 'runtime/' (runtime features)"""

GREP_TOOL_DESCRIPTION = f"""Search through Bun documentation using regular expressions.
Returns: Array of objects with uri and matchCount, sorted by match count.

Examples:
- Search for WebSocket: pattern: 'WebSocket'
- Find SQLite APIs: pattern: 'sqlite', path: 'api/', flags: 'i'
- Complex patterns: pattern: 'Bun\\\\.(serve|file)'

Default limit: {DEFAULT_SEARCH_LIMIT} results."""

GREP_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "pattern": {"type": "string", "description": "Regular expression pattern to search for"},
        "path": {
            "type": "string",
            "description": "Optional path prefix to search in (e.g., 'api/' or 'guides/')",
        },
        "limit": {
            "type": "integer",
            "minimum": 1,
            "description": f"Maximum number of results to return (default: {DEFAULT_SEARCH_LIMIT})",
        },
        "flags": {
            "type": "string",
            "description": "Optional JavaScript-style flags: i (ignore case), m (multiline), s (dot matches newline)",
        },
    },
    "required": ["pattern"],
}


class DocsService:
    """Protocol-independent handlers shared by the MCP and HTTP surfaces."""

    def __init__(self, index: DocumentIndex, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.index = index
        self.resolver = ResourceResolver(index, max_document_bytes=self.config.max_document_bytes)
        self.searcher = Searcher(index, max_document_bytes=self.config.max_document_bytes)

    def list_resources(self) -> List[types.Resource]:
        return [
            types.Resource(
                uri=resource.uri,
                name=resource.name,
                description=resource.description,
                mimeType=resource.mime_type,
            )
            for resource in self.index.root_entries()
        ]

    def resource_templates(self) -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=f"{self.index.prefix}{{+path}}",
                name="bun-docs",
                description=f"Bun documentation with {len(self.index.documents())} pages",
                mimeType="application/json",
            )
        ]

    def read(self, uri: str) -> List[ReadResourceContents]:
        result = self.resolver.resolve(uri)
        mime_type, text = result.render()
        return [ReadResourceContents(content=text, mime_type=mime_type)]

    def tools(self) -> List[types.Tool]:
        return [
            types.Tool(
                name=GREP_TOOL_NAME,
                description=GREP_TOOL_DESCRIPTION,
                inputSchema=GREP_INPUT_SCHEMA,
            )
        ]

    def grep(self, arguments: Dict[str, Any] | None) -> str:
        arguments = arguments or {}
        limit = arguments.get("limit")
        if limit is None:
            limit = self.config.search_limit
        elif isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidQueryError(f"limit must be an integer, got {limit!r}")
        results = self.searcher.search(
            arguments.get("pattern"),
            path=arguments.get("path"),
            limit=limit,
            flags=arguments.get("flags"),
        )
        return json.dumps([result.to_dict() for result in results], indent=2)

    def call_tool(self, name: str, arguments: Dict[str, Any] | None) -> List[types.TextContent]:
        if name != GREP_TOOL_NAME:
            raise ValueError(f"Unknown tool: {name}")
        return [types.TextContent(type="text", text=self.grep(arguments))]


def create_server(service: DocsService) -> Server:
    server: Server = Server(SERVER_NAME, version=__version__, instructions=INSTRUCTIONS)

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return service.list_resources()

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
        return service.resource_templates()

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> List[ReadResourceContents]:
        return service.read(str(uri))

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return service.tools()

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        try:
            return service.call_tool(name, arguments)
        except ValueError as exc:
            LOGGER.info("Rejected %s call: %s", name, exc)
            raise

    return server


async def _run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def serve_stdio(service: DocsService) -> None:
    """Serve MCP over standard input/output until the client disconnects."""
    server = create_server(service)
    LOGGER.debug("Serving %d resources over stdio", len(service.index))
    asyncio.run(_run_stdio(server))
