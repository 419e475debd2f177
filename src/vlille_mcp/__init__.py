"""V'Lille station availability over MCP."""

__version__ = "0.1.0"
