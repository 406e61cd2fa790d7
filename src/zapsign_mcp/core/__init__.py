"""Transport-agnostic MCP core: registry, validation, execution and dispatch."""

from .exceptions import (
    DuplicateToolError,
    ErrorKind,
    InvalidParamsError,
    MCPError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
)
from .executor import ExecutionResult, ToolExecutor
from .processor import MCPProcessor
from .tool_registry import ToolDescriptor, ToolRegistry, ToolSource

__all__ = [
    "DuplicateToolError",
    "ErrorKind",
    "ExecutionResult",
    "InvalidParamsError",
    "MCPError",
    "MCPProcessor",
    "ToolDescriptor",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolNotFoundError",
    "ToolRegistrationError",
    "ToolRegistry",
    "ToolSource",
]
