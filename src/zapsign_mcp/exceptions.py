"""Shared exception types for the ZapSign MCP server."""

from __future__ import annotations

from typing import Any, Optional

from .core.exceptions import ErrorKind, UpstreamServiceError


class ZapSignMCPError(RuntimeError):
    """Base exception for ZapSign MCP server errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, *, error_code: str = "zapsign_mcp_error") -> None:
        super().__init__(message)
        self.error_code = error_code


class FatalStartupError(ZapSignMCPError):
    """The server cannot start; the process exits with status 1."""

    kind = ErrorKind.FATAL_STARTUP_ERROR

    def __init__(self, message: str, *, error_code: str = "FATAL_STARTUP_ERROR") -> None:
        super().__init__(message, error_code=error_code)


class ConfigurationError(FatalStartupError):
    """Environment or CLI configuration is invalid."""

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.errors = list(errors or [])


class TransportError(ZapSignMCPError):
    """A transport could not accept or deliver a message."""

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, message: str, *, error_code: str = "TRANSPORT_ERROR") -> None:
        super().__init__(message, error_code=error_code)


class SessionNotFoundError(TransportError):
    """No open session has the requested id."""

    def __init__(self, session_id: Optional[str]) -> None:
        super().__init__(f"No transport/server found for sessionId: {session_id}", error_code="SESSION_NOT_FOUND")
        self.session_id = session_id


class AuthenticationError(ZapSignMCPError):
    """No usable API key is configured."""

    def __init__(self, message: str = "No API key available for authentication") -> None:
        super().__init__(message, error_code="AUTHENTICATION_ERROR")


class ZapSignAPIError(UpstreamServiceError):
    """Failed request to the ZapSign REST API."""

    service_name = "ZapSign"

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Any = None,
    ) -> None:
        super().__init__(message, method=method, endpoint=endpoint, status_code=status_code)
        self.response_data = response_data
