"""MCP tools for the ZapSign API.

Tools are grouped by resource:
- documents: Create documents from uploads, list, inspect, delete, extra docs, timestamps
- signers: Add, inspect, update and remove signers, batch signing
- templates: Create documents from templates, browse templates
- webhooks: Manage company webhooks and their headers
- partners: Partner accounts and payment status

Each module exposes ``TOOLS``, a list of ZapSignTool definitions. The order of
``_MODULE_PATHS`` is the order tools are registered and listed in.
"""

from __future__ import annotations

import functools
from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence

from .base import ZapSignTool

if TYPE_CHECKING:
    from ..core.tool_registry import ToolSource
    from ..services.zapsign_client import ZapSignClient

_MODULE_PATHS = {
    "documents": "zapsign_mcp.tools.documents",
    "signers": "zapsign_mcp.tools.signers",
    "templates": "zapsign_mcp.tools.templates",
    "webhooks": "zapsign_mcp.tools.webhooks",
    "partners": "zapsign_mcp.tools.partners",
}

AVAILABLE_MODULES = list(_MODULE_PATHS.keys())


def load_module_tools(tag: str) -> Sequence[ZapSignTool]:
    """Import one registered module and return its tool definitions."""
    if tag not in _MODULE_PATHS:
        raise KeyError(f"Unknown tool module: {tag}")
    return list(import_module(_MODULE_PATHS[tag]).TOOLS)


def tool_catalog() -> Dict[str, Sequence[ZapSignTool]]:
    """All tool definitions grouped by module tag, without binding a client."""
    return {tag: load_module_tools(tag) for tag in _MODULE_PATHS}


def _bound_envelopes(tag: str, client: ZapSignClient) -> List[Mapping[str, Any]]:
    return [tool.bind(client) for tool in load_module_tools(tag)]


def build_tool_sources(client: ZapSignClient) -> List[ToolSource]:
    """Registration list for ``ToolRegistry.discover`` with handlers bound to ``client``."""
    return [(tag, functools.partial(_bound_envelopes, tag, client)) for tag in _MODULE_PATHS]


__all__ = ["AVAILABLE_MODULES", "ZapSignTool", "build_tool_sources", "load_module_tools", "tool_catalog"]
