"""MCP server for Huly issue tracking."""

__version__ = "1.0.0"
