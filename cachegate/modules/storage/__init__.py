"""
Storage Module - Black Box Interface

Purpose: Abstract all data persistence
Interface: connect(), disconnect()
Hidden: Redis specifics, connection pooling, serialization

Can be replaced with any storage backend without affecting other modules.
"""

import os
from typing import Optional

import redis.asyncio as redis


class StorageModule:
    """Black box storage abstraction."""

    def __init__(self, connection_url: str = None, password: Optional[str] = None):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        # Password passed separately to avoid URL encoding issues
        self.password = password
        self._client = None

    @classmethod
    def from_config(cls, config) -> "StorageModule":
        """Build storage from the config module's redis settings."""
        url = f"redis://{config.get('redis_host')}:{config.get('redis_port')}/{config.get('redis_db')}"
        return cls(url, password=config.get("redis_password"))

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.password,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = ["StorageModule"]
