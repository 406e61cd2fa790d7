"""Composition root: build the runtime once and run a transport on it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Literal, Optional, TextIO

import httpx
import uvicorn
from starlette.applications import Starlette

from .config import ServerConfig
from .core.exceptions import DuplicateToolError
from .core.executor import ToolExecutor
from .core.processor import MCPProcessor
from .core.tool_registry import ToolRegistry, ToolSource
from .exceptions import FatalStartupError
from .health import HealthReporter, make_health_handler
from .services import AuthService, ZapSignClient
from .telemetry import tool_logger
from .tools import build_tool_sources
from .transports.sessions import SessionManager
from .transports.sse import create_sse_app
from .transports.stdio import StdioTransport

logger = logging.getLogger(__name__)

Transport = Literal["stdio", "sse"]

SHUTDOWN_GRACE_SECONDS = 5


@dataclass
class ServerRuntime:
    """Everything a processor needs, built once per process and shared."""

    config: ServerConfig
    auth: AuthService
    client: ZapSignClient
    registry: ToolRegistry
    executor: ToolExecutor
    auth_http: Optional[httpx.AsyncClient] = None

    def create_processor(self, session_id: Optional[str] = None) -> MCPProcessor:
        return MCPProcessor(
            self.registry,
            self.executor,
            server_name=self.config.server_name,
            server_version=self.config.server_version,
            session_id=session_id,
        )

    def health_reporter(self, transport: str) -> HealthReporter:
        return HealthReporter(
            server_name=self.config.server_name,
            server_version=self.config.server_version,
            transport=transport,
            auth=self.auth,
            client=self.client,
            registry=self.registry,
        )

    async def log_startup_status(self) -> Dict[str, Any]:
        """Log authentication and upstream status; problems are warnings only."""
        logger.info(f"Authentication: {self.auth.get_auth_summary()}")
        status = await self.auth.get_authentication_status()
        if not status["isValid"]:
            logger.warning("ZapSign API key could not be validated; tool calls may fail")
        if not await self.client.health_check():
            logger.warning("ZapSign API is not reachable at startup")
        return status

    async def aclose(self) -> None:
        await self.client.aclose()
        if self.auth_http is not None:
            await self.auth_http.aclose()


def build_runtime(
    config: ServerConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    tool_sources: Optional[Iterable[ToolSource]] = None,
) -> ServerRuntime:
    """Wire auth, API client, registry and executor from ``config``.

    Args:
        config: Validated server configuration
        transport: httpx transport for upstream calls (tests inject a mock)
        tool_sources: Registration list overriding the built-in catalog

    Raises:
        FatalStartupError: If two tools share a name
    """
    auth_http = httpx.AsyncClient(timeout=config.request_timeout, transport=transport)
    auth = AuthService(config.zapsign_api_key, config.api_base_url, http_client=auth_http)
    client = ZapSignClient(auth, config.api_base_url, timeout=config.request_timeout, transport=transport)

    registry = ToolRegistry()
    try:
        registry.discover(tool_sources if tool_sources is not None else build_tool_sources(client))
    except DuplicateToolError as exc:
        raise FatalStartupError(f"Tool registration failed: {exc}") from exc

    tool_logger.log_tool_discovery(
        len(registry),
        modules={tag: len(tools) for tag, tools in registry.by_source().items()},
    )
    if not len(registry):
        logger.warning("No tools registered")

    return ServerRuntime(
        config=config,
        auth=auth,
        client=client,
        registry=registry,
        executor=ToolExecutor(),
        auth_http=auth_http,
    )


async def serve_stdio(
    runtime: ServerRuntime,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    handle_signals: bool = True,
) -> int:
    transport = StdioTransport(
        runtime.create_processor(),
        stdin=stdin,
        stdout=stdout,
        handle_signals=handle_signals,
    )
    return await transport.serve()


class _SessionAwareServer(uvicorn.Server):
    """uvicorn server that ends open SSE streams as soon as shutdown starts."""

    def __init__(self, config: uvicorn.Config, sessions: SessionManager, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(config)
        self._sessions = sessions
        self._loop = loop

    def handle_exit(self, sig: int, frame: Any) -> None:
        self._loop.call_soon_threadsafe(self._sessions.close_all)
        super().handle_exit(sig, frame)


def create_app(runtime: ServerRuntime, sessions: SessionManager) -> Starlette:
    return create_sse_app(sessions, make_health_handler(runtime.health_reporter("sse")))


async def serve_sse(runtime: ServerRuntime) -> int:
    """Serve HTTP/SSE with uvicorn inside the current event loop."""
    sessions = SessionManager(runtime.create_processor)
    app = create_app(runtime, sessions)

    host, port = runtime.config.host, runtime.config.port
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        timeout_graceful_shutdown=SHUTDOWN_GRACE_SECONDS,
    )
    server = _SessionAwareServer(uv_config, sessions, asyncio.get_running_loop())

    logger.info(f"MCP server listening on http://{host}:{port} (SSE: /sse, messages: /messages, health: /health)")
    try:
        await server.serve()
    finally:
        sessions.close_all()
    return 0


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error(f"Unhandled error in event loop: {context.get('message', 'no message')}", exc_info=exc)


async def run_server(config: ServerConfig, *, transport: Transport = "stdio") -> int:
    """Build the runtime, report startup status and serve until shutdown."""
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    runtime = build_runtime(config)
    try:
        logger.info(
            f"{config.server_name} v{config.server_version} starting with {len(runtime.registry)} tools "
            f"({transport} transport)"
        )
        await runtime.log_startup_status()
        if transport == "sse":
            return await serve_sse(runtime)
        return await serve_stdio(runtime)
    finally:
        await runtime.aclose()
