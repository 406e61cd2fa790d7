"""MCP transports: stdio and HTTP/SSE."""

from .sessions import Session, SessionManager, SessionState
from .sse import create_sse_app
from .stdio import StdioTransport

__all__ = ["Session", "SessionManager", "SessionState", "StdioTransport", "create_sse_app"]
