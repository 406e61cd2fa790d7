"""Structured logging helpers for tool activity."""

from .tool_logger import (
    log_tool_call_end,
    log_tool_call_rejected,
    log_tool_call_start,
    log_tool_discovery,
    log_tools_list,
    sanitize_for_logging,
)

__all__ = [
    "log_tool_call_end",
    "log_tool_call_rejected",
    "log_tool_call_start",
    "log_tool_discovery",
    "log_tools_list",
    "sanitize_for_logging",
]
