"""Health check endpoint handlers for the HTTP transport."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict

from starlette.requests import Request
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from .core.tool_registry import ToolRegistry
    from .services import AuthService, ZapSignClient

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthReporter:
    """Collects server, authentication, upstream and catalog status."""

    def __init__(
        self,
        *,
        server_name: str,
        server_version: str,
        transport: str,
        auth: AuthService,
        client: ZapSignClient,
        registry: ToolRegistry,
    ) -> None:
        self.server_name = server_name
        self.server_version = server_version
        self.transport = transport
        self.auth = auth
        self.client = client
        self.registry = registry

    def server_info(self) -> Dict[str, Any]:
        return {"name": self.server_name, "version": self.server_version, "transport": self.transport}

    async def report(self) -> Dict[str, Any]:
        authentication = await self.auth.get_authentication_status()
        api_healthy = await self.client.health_check()
        return {
            "status": "healthy",
            "timestamp": _timestamp(),
            "server": self.server_info(),
            "authentication": authentication,
            "api": {"healthy": api_healthy},
            "tools": {"count": len(self.registry)},
        }


async def build_health_response(reporter: HealthReporter) -> JSONResponse:
    """Build a health check response.

    Returns:
        200 with the health report, or 500 with the error if gathering it failed
    """
    try:
        content = await reporter.report()
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            content={"status": "unhealthy", "error": str(e), "timestamp": _timestamp()},
            status_code=500,
            headers=NO_CACHE_HEADERS,
        )

    return JSONResponse(content=content, status_code=200, headers=NO_CACHE_HEADERS)


def make_health_handler(reporter: HealthReporter) -> Callable[[Request], Awaitable[JSONResponse]]:
    """Starlette endpoint for ``GET /health`` bound to ``reporter``."""

    async def health_check_handler(request: Request) -> JSONResponse:
        return await build_health_response(reporter)

    return health_check_handler
