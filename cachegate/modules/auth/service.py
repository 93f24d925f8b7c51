"""
Authentication Service Facade following Black Box Design principles.

This module provides:
- A clean interface for request authentication that hides implementation details
- Standardized authentication results
- Protocol definitions for swappable implementations
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Any

from .auth import strip_bearer
from .errors import AuthenticationError


@dataclass
class AuthResult:
    """Standardized authentication result."""
    ok: bool
    user: Optional[dict]
    token: Optional[str]
    error: Optional[str] = None


class AuthenticationService(Protocol):
    """Protocol for authentication services."""

    async def authenticate(self, authorization: Optional[str]) -> AuthResult:
        """
        Authenticate a request.

        Args:
            authorization: Authorization header value

        Returns:
            AuthResult with authentication status and details
        """
        ...


class DefaultAuthenticationService:
    """
    Default implementation of AuthenticationService.

    This facade hides the token store and user lookup behind a single
    call for the API layer.
    """

    def __init__(self, auth_module: Any):
        """
        Initialize with any auth module that has get_user.

        Args:
            auth_module: Module with get_user(token) method
        """
        self._auth = auth_module

    async def authenticate(self, authorization: Optional[str]) -> AuthResult:
        """
        Authenticate a request from its Authorization header.

        Args:
            authorization: Authorization header value, "Bearer <token>"

        Returns:
            AuthResult with authentication status and details
        """
        token = strip_bearer(authorization)
        if not token:
            return AuthResult(ok=False, user=None, token=None, error="Token not provided")

        try:
            user = await self._auth.get_user(token)
        except AuthenticationError as e:
            return AuthResult(ok=False, user=None, token=None, error=e.message)

        return AuthResult(ok=True, user=user, token=token)
