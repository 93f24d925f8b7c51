"""
Redis-backed bearer token store.

Plain tokens are handed to the client once; Redis only keeps the SHA-256
digest of each token.
"""

import hashlib
import json
import secrets
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional


class RedisTokenStore:
    """TokenStore implementation using Redis keys auth:token:{digest}."""

    def __init__(self, redis_client, ttl: Optional[int] = None):
        """
        Initialize token store.

        Args:
            redis_client: Async Redis client
            ttl: Token lifetime in seconds, None for tokens that never expire
        """
        self.redis = redis_client
        self.ttl = ttl

    @staticmethod
    def digest(token: str) -> str:
        """SHA-256 hex digest of a plain token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    async def issue(self, user_id: int, name: str) -> str:
        """
        Generate and persist a new token for user_id.

        Args:
            user_id: Owner of the token
            name: Token label (e.g. "auth_token")

        Returns:
            Plain token
        """
        # Generate cryptographically secure token (32 bytes = 256 bits)
        token = secrets.token_urlsafe(32)
        digest = self.digest(token)

        record = {
            "user_id": user_id,
            "name": name,
            "created_at": datetime.now(UTC).isoformat(),
        }
        await self.redis.set(f"auth:token:{digest}", json.dumps(record), ex=self.ttl)
        await self.redis.sadd(f"user:{user_id}:tokens", digest)

        return token

    async def find(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the token record, or None if the token is unknown or expired."""
        if not token:
            return None

        data = await self.redis.get(f"auth:token:{self.digest(token)}")
        if not data:
            return None
        return json.loads(data)

    async def revoke(self, token: str) -> bool:
        """Delete a token; returns whether it existed."""
        if not token:
            return False

        digest = self.digest(token)
        key = f"auth:token:{digest}"

        data = await self.redis.get(key)
        if not data:
            return False

        record = json.loads(data)
        await self.redis.delete(key)
        await self.redis.srem(f"user:{record['user_id']}:tokens", digest)
        return True

    async def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        """
        Get all live token records of a user.

        Index entries whose token expired are cleaned up on the way.
        """
        digests = await self.redis.smembers(f"user:{user_id}:tokens")

        records = []
        for digest in digests:
            data = await self.redis.get(f"auth:token:{digest}")
            if data:
                records.append(json.loads(data))
            else:
                # Clean up stale entry
                await self.redis.srem(f"user:{user_id}:tokens", digest)

        return records
