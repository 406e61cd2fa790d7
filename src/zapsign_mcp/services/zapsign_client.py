"""Async HTTP client for the ZapSign REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .. import __version__
from ..exceptions import ZapSignAPIError
from .auth_service import AuthService

LOGGER = logging.getLogger(__name__)

USER_AGENT = f"MCP-ZapSign-Server/{__version__}"


def describe_status(status_code: int, endpoint: str, data: Any) -> str:
    """Human readable message for a failed ZapSign response."""
    message = data.get("message") if isinstance(data, Mapping) else None

    if status_code == 400:
        return f"Bad Request: {message or 'Invalid parameters'}"
    if status_code == 401:
        return "Unauthorized: Invalid API key or authentication failed"
    if status_code == 403:
        return "Forbidden: Insufficient permissions for this operation"
    if status_code == 404:
        return f"Not Found: {endpoint} endpoint not found"
    if status_code == 429:
        return "Rate Limited: Too many requests, please try again later"
    if status_code == 500:
        return "Internal Server Error: ZapSign service temporarily unavailable"
    return f"HTTP {status_code}: {message or 'Unknown error'}"


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


class ZapSignClient:
    """Thin async wrapper over ``httpx.AsyncClient`` bound to one API root.

    Endpoints are paths relative to ``base_url`` (``/docs/``). Every request
    carries the bearer key from ``auth``; failures surface as ZapSignAPIError
    with the request context attached.
    """

    def __init__(
        self,
        auth: AuthService,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={"User-Agent": USER_AGENT, "Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises:
            AuthenticationError: If no API key is configured
            ZapSignAPIError: On transport failure or a non-2xx status
        """
        method = method.upper()
        headers = self.auth.get_auth_headers()

        LOGGER.debug(f"API Request: {method} {endpoint}")
        try:
            response = await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            LOGGER.error(f"API Request failed: {method} {endpoint}: {exc}")
            raise ZapSignAPIError(
                "No response received from ZapSign API", method=method, endpoint=endpoint
            ) from exc

        data = _decode(response)
        if response.is_error:
            message = describe_status(response.status_code, endpoint, data)
            LOGGER.error(f"API Response Error: {method} {endpoint} -> {response.status_code}: {message}")
            raise ZapSignAPIError(
                message,
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                response_data=data,
            )

        LOGGER.debug(f"API Response: {method} {endpoint} -> {response.status_code} ({len(response.content)} bytes)")
        return data

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def health_check(self) -> bool:
        """True when the API root answers with a 2xx status."""
        try:
            await self.get("/")
            return True
        except Exception as exc:
            LOGGER.warning(f"ZapSign API health check failed: {exc}")
            return False
