"""Clients for the remote ZapSign API."""

from .auth_service import AuthService
from .zapsign_client import ZapSignClient

__all__ = ["AuthService", "ZapSignClient"]
