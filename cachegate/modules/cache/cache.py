"""
Single-slot cache module for Cachegate API.

Keeps at most one time-limited record behind a fixed Redis key. The record
expires from Redis on its own TTL, while the remaining time reported to
clients is computed from the record's creation timestamp.

Design Principles:
- Read-through-create: a probe creates the entry only when the slot is empty
- Redis is the sole serialization point (SET NX), no local locks
- Timestamp arithmetic decides reported expiry, not the store's own TTL
"""

import json
import logging
import secrets
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from redis.exceptions import RedisError

logger = logging.getLogger("cachegate.cache")


class StorageUnavailable(Exception):
    """Raised when the backing store cannot be read or written."""


@dataclass
class CacheEntry:
    """The record held in the cache slot."""

    unique_id: str
    created_at: str
    created_timestamp: int
    expires_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create from dictionary (e.g., from JSON)."""
        return cls(
            unique_id=data.get("unique_id", ""),
            created_at=data.get("created_at", ""),
            created_timestamp=int(data.get("created_timestamp", 0)),
            expires_at=data.get("expires_at", ""),
        )


def generate_unique_id(now: float, prefix: str = "cache_") -> str:
    """
    Build a time-biased unique id: hex seconds, hex microseconds, random digits.

    Example: cache_6710a2b40c3f1.58213477
    """
    seconds = int(now)
    micros = int((now - seconds) * 1_000_000)
    return f"{prefix}{seconds:08x}{micros:05x}.{secrets.randbelow(10**8):08d}"


class CacheModule:
    """
    Manages the single test cache slot in Redis.

    Follows the same patterns as the other modules:
    - Receives redis_client in __init__
    - Fixed key naming (unique_id_cache by default)
    - TTL-based expiration handled by Redis
    """

    DEFAULT_TTL = 60
    DEFAULT_KEY = "unique_id_cache"
    # First SET NX plus one retry when the winner's entry is already gone
    CREATE_ATTEMPTS = 2

    def __init__(
        self,
        redis_client,
        ttl: int = DEFAULT_TTL,
        key: str = DEFAULT_KEY,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache module.

        Args:
            redis_client: Async Redis client
            ttl: Entry lifetime in seconds
            key: Redis key of the slot
            clock: Returns seconds since epoch; injectable for tests
        """
        self.redis = redis_client
        self.ttl = ttl
        self.key = key
        self.clock = clock

    async def probe_or_create(self) -> Tuple[CacheEntry, bool]:
        """
        Return the current entry, creating one if the slot is empty.

        Returns:
            Tuple of (entry, was_hit)

        Raises:
            StorageUnavailable: If Redis cannot be reached
        """
        existing = await self._read()
        if existing:
            logger.info("Cache hit - returning existing data", extra={"entry": existing.to_dict()})
            return existing, True

        for attempt in range(self.CREATE_ATTEMPTS):
            entry = self._new_entry()
            if await self._create(entry):
                logger.info("Cache miss - creating new data", extra={"entry": entry.to_dict()})
                return entry, False

            # Another caller filled the slot between our read and write
            winner = await self._read()
            if winner:
                logger.info("Cache hit - entry created concurrently", extra={"entry": winner.to_dict()})
                return winner, True
            logger.info(f"Cache slot vanished after concurrent create (attempt {attempt + 1})")

        logger.warning("Cache slot kept changing, returning unstored entry")
        return entry, False

    async def probe(self) -> Dict[str, Any]:
        """
        Run a cache probe and describe its outcome for API clients.

        Returns:
            Dict with status, message, data and cache_remaining_seconds
        """
        entry, was_hit = await self.probe_or_create()

        if was_hit:
            return {
                "status": "cache_hit",
                "message": "Data found in cache",
                "data": entry.to_dict(),
                "cache_remaining_seconds": self.remaining_seconds(entry),
            }

        return {
            "status": "cache_miss",
            "message": f"New data created and saved to cache for {self.ttl} seconds",
            "data": entry.to_dict(),
            "cache_remaining_seconds": self.ttl,
        }

    def remaining_seconds(self, entry: CacheEntry) -> int:
        """Seconds left for entry by timestamp arithmetic, within [0, ttl]."""
        elapsed = int(self.clock()) - entry.created_timestamp
        return min(self.ttl, max(0, self.ttl - elapsed))

    async def _remaining_from_storage(self) -> int:
        """Re-read the slot and compute remaining seconds; 0 when empty."""
        entry = await self._read()
        if entry is None:
            return 0
        return self.remaining_seconds(entry)

    async def clear(self) -> bool:
        """
        Delete the slot.

        Returns:
            True if an entry was deleted, False if the slot was already empty
        """
        try:
            deleted = await self.redis.delete(self.key)
        except RedisError as e:
            raise StorageUnavailable(f"Cache delete failed: {e}") from e

        result = bool(deleted)
        logger.info("Test cache cleared", extra={"success": result})
        return result

    async def stats(self) -> Dict[str, Any]:
        """
        Describe the slot's age.

        Returns:
            {"exists": False} when empty, otherwise exists, entry,
            elapsed_seconds, remaining_seconds and progress_percentage
        """
        entry = await self._read()
        if entry is None:
            return {"exists": False}

        remaining = await self._remaining_from_storage()
        elapsed = min(self.ttl, max(0, self.ttl - remaining))

        return {
            "exists": True,
            "entry": entry.to_dict(),
            "elapsed_seconds": elapsed,
            "remaining_seconds": remaining,
            "progress_percentage": progress_percentage(elapsed, self.ttl),
        }

    def _new_entry(self) -> CacheEntry:
        now = self.clock()
        created = datetime.fromtimestamp(now, UTC)
        return CacheEntry(
            unique_id=generate_unique_id(now),
            created_at=created.isoformat(),
            created_timestamp=int(now),
            expires_at=(created + timedelta(seconds=self.ttl)).isoformat(),
        )

    async def _create(self, entry: CacheEntry) -> bool:
        """SET NX the entry with the slot TTL; False if the slot was taken."""
        try:
            created = await self.redis.set(
                self.key, json.dumps(entry.to_dict()), ex=self.ttl, nx=True
            )
        except RedisError as e:
            raise StorageUnavailable(f"Cache write failed: {e}") from e
        return bool(created)

    async def _read(self) -> Optional[CacheEntry]:
        try:
            data = await self.redis.get(self.key)
        except RedisError as e:
            raise StorageUnavailable(f"Cache read failed: {e}") from e

        if not data:
            return None
        return CacheEntry.from_dict(json.loads(data))


def progress_percentage(elapsed: int, ttl: int) -> float:
    """Share of ttl elapsed as a percentage rounded to 2 places, within [0, 100]."""
    if ttl <= 0:
        return 100.0
    return round(min(100.0, max(0.0, elapsed / ttl * 100)), 2)
