"""API key handling for the ZapSign REST API."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

API_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MIN_API_KEY_LENGTH = 32


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuthService:
    """Holds the ZapSign API key and checks it against the API.

    The key is a static bearer token; there is nothing to refresh.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_base_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key or None
        self.api_base_url = api_base_url.rstrip("/")
        self._http_client = http_client
        self._timeout = timeout

    @property
    def has_key(self) -> bool:
        return self._api_key is not None

    def get_api_key(self) -> Optional[str]:
        return self._api_key

    def get_auth_headers(self) -> Dict[str, str]:
        """Headers that authenticate one API request.

        Raises:
            AuthenticationError: If no API key is configured
        """
        if not self._api_key:
            raise AuthenticationError()
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def validate_api_key_format(api_key: Optional[str]) -> bool:
        if not api_key or not isinstance(api_key, str):
            return False
        return len(api_key) >= MIN_API_KEY_LENGTH and bool(API_KEY_PATTERN.match(api_key))

    async def validate_api_key(self) -> bool:
        """Check the key with a lightweight authenticated request.

        Only 401 and 403 count as rejection; other statuses mean the key was
        accepted even if the endpoint itself failed.
        """
        if not self.validate_api_key_format(self._api_key):
            logger.warning("Invalid API key format")
            return False

        url = f"{self.api_base_url}/models/"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=self.get_auth_headers())
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, headers=self.get_auth_headers())
        except httpx.HTTPError as exc:
            logger.error(f"API key validation error: {exc}")
            return False

        if response.status_code == 401:
            logger.warning("API key validation failed - unauthorized")
            return False
        if response.status_code == 403:
            logger.warning("API key validation failed - forbidden")
            return False

        logger.info("API key validation successful")
        return True

    async def get_authentication_status(self) -> Dict[str, Any]:
        """Return ``{hasKey, isValid, lastChecked}`` for health reporting."""
        status: Dict[str, Any] = {"hasKey": self.has_key, "isValid": False, "lastChecked": None}
        if self.has_key:
            status["isValid"] = await self.validate_api_key()
            status["lastChecked"] = _now()
        logger.info(f"Authentication status check completed: {status}")
        return status

    def get_auth_summary(self) -> Dict[str, Any]:
        """Key presence and length only, safe for logs."""
        return {
            "hasKey": self.has_key,
            "keyLength": len(self._api_key) if self._api_key else 0,
            "formatValid": self.validate_api_key_format(self._api_key),
            "timestamp": _now(),
        }
