"""
Authentication module for Cachegate API.

This module handles user registration, credential checks and the bearer
token lifecycle. It's designed as a black box that can be replaced with any
auth system without affecting other modules.
"""

import asyncio
import json
import logging
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from ..api.models import LoginRequest, RegisterRequest
from .errors import AuthenticationError, InternalError, ValidationError
from .interfaces import PasswordHasher, TokenStore
from .users import EmailTaken, UserRepository

logger = logging.getLogger("cachegate.auth")

TOKEN_TYPE = "Bearer"


def strip_bearer(token: Optional[str]) -> str:
    """Remove a case-insensitive "Bearer " prefix and surrounding whitespace."""
    if not token:
        return ""
    token = token.strip()
    if token[:7].lower() == "bearer ":
        token = token[7:].strip()
    return token


def format_validation_errors(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Convert pydantic errors to a {field: [messages]} map."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "payload"
        if error["type"] == "missing" or error.get("input") == "":
            message = f"The {field} field is required."
        elif error["type"] == "string_pattern_mismatch" and field == "email":
            message = "The email field must be a valid email address."
        else:
            message = error["msg"]
        errors.setdefault(field, []).append(message)
    return errors


class AuthModule:
    """
    Authentication module for users and bearer tokens.

    Registers users, verifies email/password credentials, and issues,
    resolves and revokes opaque bearer tokens.
    """

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenStore,
        hasher: PasswordHasher,
        redis_client=None,
        token_name: str = "auth_token",
    ):
        """
        Initialize auth module.

        Args:
            users: User record repository
            tokens: Bearer token store
            hasher: Password hasher
            redis_client: Optional async Redis client for the audit trail
            token_name: Label stored with every issued token
        """
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.redis = redis_client
        self.token_name = token_name

    async def validate_register(self, data: Any) -> RegisterRequest:
        """
        Validate registration data.

        Raises:
            ValidationError: With a {field: [messages]} map
        """
        if not isinstance(data, dict):
            data = {}

        request, errors = self._parse(RegisterRequest, data)

        password = data.get("password")
        if isinstance(password, str) and password and "password" not in errors:
            if data.get("password_confirmation") != password:
                errors.setdefault("password", []).append(
                    "The password field confirmation does not match."
                )

        email = data.get("email")
        if "email" not in errors and isinstance(email, str):
            if await self.users.email_exists(email):
                errors.setdefault("email", []).append("The email has already been taken.")

        if errors:
            raise ValidationError(errors)
        return request

    def validate_login(self, data: Any) -> LoginRequest:
        """
        Validate login data.

        Raises:
            ValidationError: With a {field: [messages]} map
        """
        if not isinstance(data, dict):
            data = {}

        request, errors = self._parse(LoginRequest, data)
        if errors:
            raise ValidationError(errors)
        return request

    async def register(self, data: Any) -> Dict[str, Any]:
        """
        Register a new user and issue their first token.

        Returns:
            Dict with user, token and token_type

        Raises:
            ValidationError: Invalid input or email already taken
            InternalError: Storage failure
        """
        request = await self.validate_register(data)

        try:
            password_hash = await asyncio.to_thread(self.hasher.hash, request.password)
            user = await self.users.create(request.name, request.email, password_hash)
            token = await self.tokens.issue(user["id"], self.token_name)
        except EmailTaken:
            raise ValidationError({"email": ["The email has already been taken."]}) from None
        except RedisError as e:
            logger.error(f"Registration storage failure: {e}")
            raise InternalError("Registration failed", cause=e) from e

        await self._log_event("user_registered", {"user_id": user["id"]})
        logger.info(f"Registered user {user['id']}")

        return {
            "user": UserRepository.to_public(user),
            "token": token,
            "token_type": TOKEN_TYPE,
        }

    async def login(self, data: Any) -> Dict[str, Any]:
        """
        Authenticate email/password and issue a fresh token.

        Raises:
            ValidationError: Invalid input
            AuthenticationError: Credentials do not match
        """
        request = self.validate_login(data)

        user = await self.users.find_by_email(request.email)
        verified = False
        if user:
            verified = await asyncio.to_thread(
                self.hasher.verify, request.password, user.get("password_hash", "")
            )

        if not verified:
            await self._log_event("login_failed", {"email": request.email})
            raise AuthenticationError("Invalid credentials")

        token = await self.tokens.issue(user["id"], self.token_name)
        await self._log_event("login_succeeded", {"user_id": user["id"]})

        return {
            "user": UserRepository.to_public(user),
            "token": token,
            "token_type": TOKEN_TYPE,
        }

    async def logout(self, token: Optional[str]) -> bool:
        """
        Revoke the presented token.

        Raises:
            AuthenticationError: Token missing or unknown
        """
        token = strip_bearer(token)
        if not token:
            raise AuthenticationError("Token not found")

        record = await self.tokens.find(token)
        if not record:
            raise AuthenticationError("Invalid token")

        await self.tokens.revoke(token)
        await self._log_event("token_revoked", {"user_id": record["user_id"]})
        return True

    async def get_user(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Resolve the owner of a token.

        Raises:
            AuthenticationError: Token missing, unknown, or owner deleted
        """
        token = strip_bearer(token)
        if not token:
            raise AuthenticationError("Token not found")

        record = await self.tokens.find(token)
        if not record:
            raise AuthenticationError("Invalid token")

        user = await self.users.get(record["user_id"])
        if not user:
            raise AuthenticationError("Invalid token")

        return UserRepository.to_public(user)

    async def is_valid_token(self, token: Optional[str]) -> bool:
        """Check a token without raising."""
        try:
            token = strip_bearer(token)
            if not token:
                return False
            return await self.tokens.find(token) is not None
        except Exception as e:
            logger.warning(f"Token check failed: {e}")
            return False

    @staticmethod
    def _parse(model: type, data: Dict[str, Any]):
        try:
            return model.model_validate(data), {}
        except PydanticValidationError as e:
            return None, format_validation_errors(e)

    async def _log_event(self, event_type: str, data: dict):
        """
        Log security event for audit.

        Args:
            event_type: Type of security event
            data: Event data
        """
        if not self.redis:
            return

        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        try:
            # Store in Redis list for audit trail, keeping the last 10000 events
            await self.redis.lpush("auth:audit", json.dumps(event))
            await self.redis.ltrim("auth:audit", 0, 9999)
        except RedisError as e:
            # The audited action has already been committed
            logger.warning(f"Failed to record audit event {event_type}: {e}")
