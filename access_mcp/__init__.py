"""MCP server exposing MS Access databases over line-delimited JSON-RPC."""

__version__ = "1.0.0"
