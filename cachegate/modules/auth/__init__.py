"""
Authentication Module - Black Box Interface

Purpose: Register users, check credentials, manage bearer tokens
Interface: register(), login(), logout(), get_user(), is_valid_token()
Hidden: Token storage, password hashing, validation rules

This module can be completely replaced with any other auth implementation
(OAuth, JWT, external service) without affecting other modules.
"""

from .auth import AuthModule, strip_bearer
from .errors import AuthenticationError, InternalError, ValidationError
from .factory import AuthFactory
from .service import AuthResult, AuthenticationService, DefaultAuthenticationService

__all__ = [
    "AuthFactory",
    "AuthModule",
    "AuthResult",
    "AuthenticationError",
    "AuthenticationService",
    "DefaultAuthenticationService",
    "InternalError",
    "ValidationError",
    "strip_bearer",
]
