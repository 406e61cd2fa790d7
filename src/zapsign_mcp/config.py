"""Server configuration loaded from the environment.

Values come from process environment variables (a ``.env`` file in the working
directory is loaded by the entry point before this runs). Every problem is
collected and reported at once through ``ConfigurationError``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import __version__
from .exceptions import ConfigurationError

LogLevel = Literal["error", "warn", "info", "debug"]

# env var -> field name
ENV_FIELDS: Dict[str, str] = {
    "PORT": "port",
    "HOST": "host",
    "ZAPSIGN_API_KEY": "zapsign_api_key",
    "ZAPSIGN_BASE_URL": "zapsign_base_url",
    "ZAPSIGN_API_VERSION": "zapsign_api_version",
    "LOG_LEVEL": "log_level",
    "LOG_DIR": "log_dir",
    "SERVER_NAME": "server_name",
    "SERVER_VERSION": "server_version",
    "ZAPSIGN_TIMEOUT": "request_timeout",
}

DEFAULT_BASE_URL = "https://api.zapsign.com.br"


class ServerConfig(BaseModel):
    """Validated configuration for one server process."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(default=3001, ge=1, le=65535)
    host: str = Field(default="localhost", min_length=1)
    zapsign_api_key: Optional[str] = None
    zapsign_base_url: str = DEFAULT_BASE_URL
    zapsign_api_version: str = Field(default="v1", min_length=1)
    log_level: LogLevel = "info"
    log_dir: Optional[Path] = None
    server_name: str = "mcp-server-zapsign"
    server_version: str = __version__
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("zapsign_base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "warning":
                return "warn"
        return value

    @field_validator("zapsign_api_key")
    @classmethod
    def _check_api_key(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("ZAPSIGN_API_KEY must not be blank")
        return value

    @property
    def api_base_url(self) -> str:
        """Root URL every ZapSign endpoint path is appended to."""
        return f"{self.zapsign_base_url}/api/{self.zapsign_api_version}"

    @property
    def has_api_key(self) -> bool:
        return bool(self.zapsign_api_key)

    def with_overrides(self, **overrides: Any) -> ServerConfig:
        """Return a copy with non-None overrides applied and re-validated."""
        values = self.model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return ServerConfig.model_validate(values)
        except ValidationError as exc:
            raise _configuration_error(exc) from exc

    def to_safe_dict(self) -> Dict[str, Any]:
        """Configuration for logging, with the API key masked."""
        data = self.model_dump(mode="json")
        if self.zapsign_api_key:
            data["zapsign_api_key"] = f"***{self.zapsign_api_key[-4:]}"
        return data


def _configuration_error(exc: ValidationError) -> ConfigurationError:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        errors.append(f"{location}: {error['msg']}")
    return ConfigurationError("Configuration validation failed: " + "; ".join(errors), errors=errors)


def load_config(environ: Optional[Mapping[str, str]] = None, *, require_api_key: bool = True) -> ServerConfig:
    """Build a ServerConfig from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``
        require_api_key: Fail when ZAPSIGN_API_KEY is unset

    Raises:
        ConfigurationError: If any value is invalid or a required one is missing
    """
    env = os.environ if environ is None else environ
    values = {field: env[name] for name, field in ENV_FIELDS.items() if env.get(name) not in (None, "")}

    try:
        config = ServerConfig.model_validate(values)
    except ValidationError as exc:
        raise _configuration_error(exc) from exc

    if require_api_key and not config.has_api_key:
        message = "ZAPSIGN_API_KEY is required"
        raise ConfigurationError(f"Configuration validation failed: {message}", errors=[message])

    return config
