"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "V'Lille Stations",
    instructions="Live bike and dock availability for V'Lille bike-share stations (Lille, GBFS feed)",
)
