"""Bridge between MCP SDK transport streams and MCPProcessor.

The SDK transports parse inbound lines and POST bodies into ``SessionMessage``
objects and serialize the ones written back. The processor works on plain
JSON-RPC dicts, so every inbound message is dumped before dispatch and every
response is validated back into a protocol message before it is sent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError

from ..core.exceptions import InvalidRequestError, MCPError, ParseError
from ..core.processor import JsonRpcMessage, MCPProcessor, internal_error_response

logger = logging.getLogger(__name__)

ReadStream = MemoryObjectReceiveStream[Union[SessionMessage, Exception]]
WriteStream = MemoryObjectSendStream[SessionMessage]


def to_request(message: SessionMessage) -> JsonRpcMessage:
    """Plain JSON-RPC dict for one inbound message, keeping only the keys the client sent."""
    return message.message.model_dump(mode="json", by_alias=True, exclude_unset=True)


def to_session_message(response: JsonRpcMessage) -> SessionMessage:
    """Outbound SDK message for one processor response."""
    if response.get("id") is None and "error" in response:
        # errors for unreadable requests have no id; the SDK model requires one
        error = types.JSONRPCError.model_construct(
            jsonrpc="2.0", id=None, error=types.ErrorData.model_validate(response["error"])
        )
        return SessionMessage(types.JSONRPCMessage.model_construct(error))
    return SessionMessage(types.JSONRPCMessage.model_validate(response))


def invalid_message_response(error: Exception) -> Dict[str, Any]:
    """JSON-RPC error for a line the transport could not turn into a message."""
    failure: MCPError
    if isinstance(error, ValidationError) and any(item["type"] == "json_invalid" for item in error.errors()):
        failure = ParseError()
    else:
        failure = InvalidRequestError("Invalid JSON-RPC message")
    return {"jsonrpc": "2.0", "id": None, "error": failure.to_dict()}


async def dispatch(
    processor: MCPProcessor,
    item: Union[SessionMessage, Exception],
    *,
    reply_to_invalid: bool,
) -> Optional[JsonRpcMessage]:
    """Run one inbound item through the processor.

    Unexpected processor failures become internal-error responses so a single
    bad message never ends the connection.
    """
    if isinstance(item, Exception):
        logger.warning(f"Invalid message received: {item}")
        return invalid_message_response(item) if reply_to_invalid else None

    request = to_request(item)
    try:
        return await processor.process_request(request)
    except Exception as exc:
        logger.error(f"Failed to process message: {exc}", exc_info=True)
        return internal_error_response(request, exc)


async def run_message_loop(
    processor: MCPProcessor,
    read_stream: ReadStream,
    write_stream: WriteStream,
    *,
    reply_to_invalid: bool = False,
    stopping: Optional[Callable[[], bool]] = None,
) -> None:
    """Serve messages from ``read_stream`` one at a time until it ends.

    Once ``stopping`` returns True, remaining inbound messages are drained
    without being processed. Responses produced after the processor was closed
    are dropped. ``write_stream`` is closed on exit, which ends the transport's
    writer.
    """
    try:
        async with read_stream:
            async for item in read_stream:
                if stopping is not None and stopping():
                    continue

                response = await dispatch(processor, item, reply_to_invalid=reply_to_invalid)
                if response is None:
                    continue
                if processor.closed:
                    logger.debug(f"Discarding response for closed session {processor.session_id}")
                    continue

                try:
                    await write_stream.send(to_session_message(response))
                except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                    logger.debug(f"Transport closed before response could be sent (session={processor.session_id})")
    finally:
        write_stream.close()
