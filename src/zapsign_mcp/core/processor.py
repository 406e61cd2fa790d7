"""Core MCP request processor - transport agnostic."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from mcp import types
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS

from ..telemetry import tool_logger
from .exceptions import (
    InvalidParamsError,
    InvalidRequestError,
    MCPError,
    MethodNotFoundError,
    ToolExecutionError,
    ToolNotFoundError,
)
from .executor import ToolExecutor
from .tool_registry import ToolRegistry
from .validation import validate_arguments

logger = logging.getLogger(__name__)

JsonRpcMessage = Dict[str, Any]


class MCPProcessor:
    """Core MCP request processor that works across all transports.

    One instance serves one connection: the stdio transport owns a single
    processor for the whole process, the SSE transport creates one per
    session. The registry and executor are shared and read-only.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executor: Optional[ToolExecutor] = None,
        *,
        server_name: str = "mcp-server-zapsign",
        server_version: str = "1.0.0",
        session_id: Optional[str] = None,
    ) -> None:
        self.tool_registry = registry
        self.executor = executor or ToolExecutor()
        self.server_name = server_name
        self.server_version = server_version
        self.session_id = session_id
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop serving requests. Calls already executing are left to finish."""
        if not self._closed:
            self._closed = True
            logger.debug(f"Processor closed (session={self.session_id})")

    # ------------------------------------------------------------------
    # Tool operations
    # ------------------------------------------------------------------

    def list_tools(self) -> List[Dict[str, Any]]:
        """Return the advertised tool catalog in registry order."""
        tools = self.tool_registry.list_tools()
        tool_logger.log_tools_list(len(tools), session_id=self.session_id)
        return tools

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Validate and execute one tool call.

        Returns:
            A CallToolResult payload with a single text content block

        Raises:
            ToolNotFoundError: If no tool has this name
            InvalidParamsError: If required parameters are missing
            ToolExecutionError: If the handler raised
            MCPError: If the handler raised a protocol error of its own
        """
        arguments = dict(arguments or {})
        tool_logger.log_tool_call_start(name, arguments, session_id=self.session_id)

        try:
            descriptor = self.tool_registry.get(name)
        except ToolNotFoundError:
            tool_logger.log_tool_call_rejected(name, "Unknown tool requested", session_id=self.session_id)
            raise

        try:
            validate_arguments(descriptor, arguments)
        except InvalidParamsError as exc:
            tool_logger.log_tool_call_rejected(
                name,
                "Missing required parameters",
                session_id=self.session_id,
                missing=exc.missing,
            )
            raise

        try:
            execution = await self.executor.execute(descriptor, arguments)
        except ToolExecutionError as exc:
            tool_logger.log_tool_call_end(
                name,
                duration_ms=exc.duration_ms,
                success=False,
                error=exc.original_message,
                session_id=self.session_id,
            )
            raise
        except MCPError as exc:
            # raised by the handler itself and passed through unwrapped
            tool_logger.log_tool_call_end(
                name,
                duration_ms=None,
                success=False,
                error=exc.message,
                session_id=self.session_id,
            )
            raise

        if execution.is_soft_error:
            tool_logger.log_tool_call_end(
                name,
                duration_ms=execution.duration_ms,
                success=False,
                error=str(execution.value.get("error")),
                session_id=self.session_id,
            )
        else:
            tool_logger.log_tool_call_end(
                name,
                duration_ms=execution.duration_ms,
                result=execution.value,
                session_id=self.session_id,
            )

        result = types.CallToolResult(
            content=[types.TextContent(type="text", text=format_result(execution.value))],
            isError=execution.is_soft_error,
        )
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    # ------------------------------------------------------------------
    # JSON-RPC handling
    # ------------------------------------------------------------------

    async def process_request(self, request: Any) -> Optional[JsonRpcMessage]:
        """Process an MCP request and return response.

        Args:
            request: MCP JSON-RPC request

        Returns:
            MCP JSON-RPC response, or None for notifications
        """
        request_id = request.get("id") if isinstance(request, dict) else None

        try:
            # Validate basic JSON-RPC structure
            if not isinstance(request, dict):
                raise InvalidRequestError("Request must be a JSON object")

            if request.get("jsonrpc") != "2.0":
                raise InvalidRequestError("Invalid jsonrpc version, must be '2.0'")

            method = request.get("method")
            if not method or not isinstance(method, str):
                raise InvalidRequestError("Missing 'method' field")

            is_notification = "id" not in request
            if self._closed:
                if is_notification:
                    return None
                raise InvalidRequestError("Server is closed")

            params = request.get("params") or {}
            if not isinstance(params, dict):
                raise InvalidRequestError("params must be an object")

            result = await self._handle_method(method, params)

            if is_notification:
                return None

            return {"jsonrpc": "2.0", "id": request_id, "result": result}

        except MCPError as e:
            if isinstance(request, dict) and "id" not in request and "method" in request:
                logger.warning(f"Notification {request.get('method')} failed: {e.message}")
                return None
            return self._error_response(request_id, e)
        except Exception as e:
            logger.error(f"Unexpected error processing request: {e}", exc_info=True)
            return self._error_response(request_id, MCPError(f"Internal error: {str(e)}"))

    async def _handle_method(self, method: str, params: Dict[str, Any]) -> Any:
        if method == "initialize":
            return self._handle_initialize(params)
        elif method == "ping":
            return {}
        elif method == "tools/list":
            return {"tools": self.list_tools()}
        elif method == "tools/call":
            return await self._handle_tools_call(params)
        elif method.startswith("notifications/"):
            logger.debug(f"Notification received: {method}")
            return None
        else:
            raise MethodNotFoundError(method)

    def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP initialize request."""
        client_info = params.get("clientInfo") or {}
        requested_version = params.get("protocolVersion")

        logger.info(
            f"MCP client connected: {client_info.get('name', 'unknown')} "
            f"v{client_info.get('version', 'unknown')} (protocol: {requested_version or 'unknown'})"
        )

        if requested_version in SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = requested_version
        else:
            protocol_version = types.LATEST_PROTOCOL_VERSION

        return {
            "protocolVersion": protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    async def _handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        if not tool_name or not isinstance(tool_name, str):
            raise InvalidParamsError("Missing 'name' in tools/call")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("arguments must be an object", tool_name=tool_name)

        return await self.call_tool(tool_name, arguments)

    def _error_response(self, request_id: Optional[Any], error: MCPError) -> Dict[str, Any]:
        """Create an error response."""
        return {"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()}


def format_result(value: Any) -> str:
    """Pretty-print a tool result for a text content block."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def internal_error_response(message: Any, error: BaseException) -> Optional[Dict[str, Any]]:
    """Build the JSON-RPC error a transport sends when processing itself blew up."""
    if isinstance(message, dict) and "id" not in message:
        return None
    request_id = message.get("id") if isinstance(message, dict) else None
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": MCPError(f"Internal error: {error}").to_dict(),
    }
