"""Structured logging of MCP tool discovery, listing and calls.

Every entry is a single JSON document so log shippers can index it:
- Request parameters (truncated)
- Execution timing
- Result size or error

None of these helpers raise: a failure while building a log entry is reported
on stderr and the tool operation carries on.
"""

import functools
import json
import logging
import sys
import time
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

MAX_LOGGED_CHARS = 500
MAX_LOGGED_ITEMS = 10

F = TypeVar("F", bound=Callable[..., Any])


def _never_raise(func: F) -> F:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            print(f"tool logging failed in {func.__name__}: {exc!r}", file=sys.stderr)
            return None

    return wrapper  # type: ignore[return-value]


def sanitize_for_logging(
    data: Any, max_length: int = MAX_LOGGED_CHARS, max_items: int = MAX_LOGGED_ITEMS
) -> Any:
    """Copy of ``data`` with long strings and sequences cut down for a log line.

    Tool arguments can carry whole documents (base64 PDFs, template data), so
    strings over ``max_length`` characters and sequences over ``max_items``
    entries are shortened with a note of their original size.
    """
    if isinstance(data, str):
        if len(data) <= max_length:
            return data
        return f"{data[:max_length]}... (truncated, {len(data)} chars total)"

    if isinstance(data, Mapping):
        return {key: sanitize_for_logging(value, max_length, max_items) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        kept = [sanitize_for_logging(item, max_length, max_items) for item in data[:max_items]]
        hidden = len(data) - len(kept)
        if hidden > 0:
            kept.append(f"... ({hidden} more items)")
        return kept

    return data


def result_size(result: Any) -> int:
    """Length of the JSON encoding of a tool result."""
    return len(json.dumps(result, default=str))


def _emit(level: int, message: str, log_data: Dict[str, Any]) -> None:
    logger.log(level, "%s: %s", message, json.dumps(log_data, default=str))


@_never_raise
def log_tool_discovery(
    tool_count: int,
    modules: Optional[Mapping[str, int]] = None,
    session_id: Optional[str] = None,
) -> None:
    """Log how many tools the registry holds after discovery, per source module."""
    _emit(
        logging.INFO,
        "Tools discovered",
        {"event": "tool_discovery", "count": tool_count, "modules": dict(modules or {}), "session_id": session_id},
    )


@_never_raise
def log_tools_list(tool_count: int, session_id: Optional[str] = None) -> None:
    """Log a tools/list request."""
    _emit(
        logging.INFO,
        "Listing available tools",
        {"event": "tools_list", "count": tool_count, "session_id": session_id},
    )


@_never_raise
def log_tool_call_start(
    tool_name: str,
    params: Dict[str, Any],
    session_id: Optional[str] = None,
) -> None:
    """Log the start of a tool call.

    Args:
        tool_name: Name of the tool being called
        params: Tool parameters
        session_id: MCP session ID
    """
    _emit(
        logging.INFO,
        "Tool execution request",
        {
            "event": "tool_call_start",
            "tool": tool_name,
            "params": sanitize_for_logging(params),
            "session_id": session_id,
            "timestamp": time.time(),
        },
    )


@_never_raise
def log_tool_call_end(
    tool_name: str,
    *,
    duration_ms: Optional[float],
    result: Any = None,
    success: bool = True,
    error: Optional[str] = None,
    session_id: Optional[str] = None,
) -> None:
    """Log the end of a tool call with timing and result size or error."""
    log_data: Dict[str, Any] = {
        "event": "tool_call_end",
        "tool": tool_name,
        "success": success,
        "execution_time_ms": duration_ms,
        "session_id": session_id,
        "timestamp": time.time(),
    }

    if success:
        log_data["result_size"] = result_size(result)
        _emit(logging.INFO, "Tool execution completed", log_data)
    else:
        log_data["error"] = error
        _emit(logging.ERROR, "Tool execution failed", log_data)


@_never_raise
def log_tool_call_rejected(
    tool_name: str,
    reason: str,
    session_id: Optional[str] = None,
    **details: Any,
) -> None:
    """Log a call refused before execution (unknown tool, missing params)."""
    _emit(
        logging.ERROR,
        reason,
        {"event": "tool_call_rejected", "tool": tool_name, "session_id": session_id, **details},
    )
