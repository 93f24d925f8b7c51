"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authentication stack based on configuration
- Wires dependencies together
- Returns the auth module and its request-authentication facade
"""

import logging
from typing import Optional, Any, Tuple

from .auth import AuthModule
from .hashing import BcryptHasher
from .service import DefaultAuthenticationService, AuthenticationService
from .tokens import RedisTokenStore
from .users import UserRepository
from ...config.provider import ConfigProvider

logger = logging.getLogger(__name__)


class AuthFactory:
    """
    Factory for building the authentication stack.

    This is the composition root that:
    - Creates all auth components
    - Wires them together via dependency injection
    - Returns only the public interfaces
    """

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        redis_client: Any,
        token_ttl: Optional[int] = None,
    ) -> Tuple[AuthModule, AuthenticationService]:
        """
        Build the complete authentication stack.

        Args:
            config_provider: Configuration provider
            redis_client: Async Redis client for users, tokens and audit logging
            token_ttl: Bearer token lifetime in seconds, None for no expiry

        Returns:
            Tuple of (auth module, authentication service facade)
        """
        auth_config = config_provider.get_auth_config()

        auth_module = AuthModule(
            users=UserRepository(redis_client),
            tokens=RedisTokenStore(redis_client, ttl=token_ttl),
            hasher=BcryptHasher(rounds=auth_config.bcrypt_rounds),
            redis_client=redis_client,
            token_name=auth_config.token_name,
        )
        logger.info(
            f"Building authentication stack (bcrypt rounds={auth_config.bcrypt_rounds}, "
            f"token ttl={token_ttl or 'none'})"
        )

        return auth_module, DefaultAuthenticationService(auth_module)
