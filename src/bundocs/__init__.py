"""Serve version-matched Bun documentation to MCP clients."""

__version__ = "0.1.0"
