"""ZapSign MCP server: ZapSign document-signing API tools over the Model Context Protocol."""

__version__ = "1.0.0"
