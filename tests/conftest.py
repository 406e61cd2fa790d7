"""Test configuration for pytest."""

from typing import Any, Callable, Dict, Iterable, Optional

import pytest

from zapsign_mcp.config import ServerConfig
from zapsign_mcp.core.processor import MCPProcessor
from zapsign_mcp.core.tool_registry import ToolRegistry

TEST_API_KEY = "test_key_" + "x" * 32


def build_envelope(
    name: str,
    handler: Callable[..., Any],
    properties: Optional[Dict[str, Any]] = None,
    required: Iterable[str] = (),
    description: str = "",
) -> Dict[str, Any]:
    return {
        "function": handler,
        "definition": {
            "type": "function",
            "function": {
                "name": name,
                "description": description,
                "parameters": {
                    "type": "object",
                    "properties": properties or {},
                    "required": list(required),
                },
            },
        },
    }


async def echo_handler(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return arguments


async def boom_handler(arguments: Dict[str, Any]) -> Dict[str, Any]:
    raise RuntimeError("boom")


async def soft_error_handler(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"error": "An error occurred while doing the thing."}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_envelope():
    """Factory for registry envelopes."""
    return build_envelope


@pytest.fixture
def echo_registry() -> ToolRegistry:
    """Registry with echo (requires msg), boom (raises) and soft_error tools."""
    registry = ToolRegistry()
    registry.register(
        build_envelope("echo", echo_handler, {"msg": {"type": "string", "description": "Message"}}, ["msg"]),
        source="test",
    )
    registry.register(build_envelope("boom", boom_handler), source="test")
    registry.register(build_envelope("soft_error", soft_error_handler), source="other")
    return registry


@pytest.fixture
def processor(echo_registry: ToolRegistry) -> MCPProcessor:
    return MCPProcessor(echo_registry, server_name="test-server", server_version="9.9.9")


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(zapsign_api_key=TEST_API_KEY, zapsign_base_url="https://zapsign.test")
