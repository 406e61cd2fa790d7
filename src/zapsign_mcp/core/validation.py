"""Structural validation of tool call arguments.

Only presence of required parameters is checked here. Value types and
business rules ("either email or phone") are left to the individual tools.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from .exceptions import InvalidParamsError
from .tool_registry import ToolDescriptor


def find_missing_parameters(descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> List[str]:
    """Return the sorted required names absent from ``arguments``.

    A key that is present counts as supplied even when its value is ``None``.
    """
    return sorted(set(descriptor.required) - set(arguments))


def validate_arguments(descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> None:
    """Raise InvalidParamsError if any required parameter is missing."""
    missing = find_missing_parameters(descriptor, arguments)
    if missing:
        raise InvalidParamsError.missing_parameters(descriptor.name, missing)
