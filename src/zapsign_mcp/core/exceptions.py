"""Core exception types for MCP processing."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Sequence

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR


class ErrorKind(str, Enum):
    """Caller-visible classification of a failed request."""

    METHOD_NOT_FOUND = "MethodNotFound"
    INVALID_PARAMS = "InvalidParams"
    EXECUTION_ERROR = "ExecutionError"
    TRANSPORT_ERROR = "TransportError"
    FATAL_STARTUP_ERROR = "FatalStartupError"
    INVALID_REQUEST = "InvalidRequest"
    PARSE_ERROR = "ParseError"
    INTERNAL_ERROR = "InternalError"


class MCPError(Exception):
    """Base exception for MCP-related errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, code: int = INTERNAL_ERROR, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code  # JSON-RPC error codes
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-RPC error format."""
        error_dict: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        data = {"kind": self.kind.value}
        if isinstance(self.data, dict):
            data.update(self.data)
        elif self.data is not None:
            data["detail"] = self.data
        error_dict["data"] = data
        return error_dict


class ParseError(MCPError):
    """Incoming message is not valid JSON."""

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, message: str = "Parse error"):
        super().__init__(message, code=PARSE_ERROR)


class InvalidRequestError(MCPError):
    """Message is JSON but not a well-formed JSON-RPC request."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message, code=INVALID_REQUEST, data=data)


class MethodNotFoundError(MCPError):
    """JSON-RPC method is not served by this server."""

    kind = ErrorKind.METHOD_NOT_FOUND

    def __init__(self, method: str):
        super().__init__(f"Method not found: {method}", code=METHOD_NOT_FOUND, data={"method": method})
        self.method = method


class ToolNotFoundError(MCPError):
    """Requested tool does not exist."""

    kind = ErrorKind.METHOD_NOT_FOUND

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", code=METHOD_NOT_FOUND, data={"tool": tool_name})
        self.tool_name = tool_name


class InvalidParamsError(MCPError):
    """Tool call is missing required parameters or has malformed params."""

    kind = ErrorKind.INVALID_PARAMS

    def __init__(self, message: str, *, tool_name: Optional[str] = None, missing: Sequence[str] = ()):
        data: dict[str, Any] = {}
        if tool_name is not None:
            data["tool"] = tool_name
        if missing:
            data["missing"] = list(missing)
        super().__init__(message, code=INVALID_PARAMS, data=data or None)
        self.tool_name = tool_name
        self.missing = list(missing)

    @classmethod
    def missing_parameters(cls, tool_name: str, missing: Sequence[str]) -> InvalidParamsError:
        return cls(
            f"Missing required parameters: {', '.join(missing)}",
            tool_name=tool_name,
            missing=missing,
        )


class ToolExecutionError(MCPError):
    """Error during tool execution."""

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(
        self,
        tool_name: str,
        message: str,
        *,
        prefix: str = "Tool execution error",
        duration_ms: Optional[float] = None,
    ):
        super().__init__(f"{prefix}: {message}", code=INTERNAL_ERROR, data={"tool": tool_name})
        self.tool_name = tool_name
        self.original_message = message
        self.duration_ms = duration_ms


class ToolRegistrationError(Exception):
    """A tool envelope could not be turned into a descriptor."""


class DuplicateToolError(ToolRegistrationError):
    """Two registration entries declare the same tool name."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' is already registered")
        self.tool_name = tool_name


class UpstreamServiceError(Exception):
    """Failure reported by a remote API that a tool talks to.

    Carries the request context so the dispatcher can tell upstream failures
    apart from bugs in the tool itself.
    """

    service_name = "Upstream"

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def context(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "endpoint": self.endpoint,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }
