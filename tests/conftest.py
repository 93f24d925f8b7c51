"""
Shared pytest fixtures for Cachegate tests.

This module provides common fixtures including:
- FakeClock: Controllable time source for TTL arithmetic
- Redis mocks, including an in-memory store with TTL and SET NX support
- FastAPI test client wired to the in-memory store
"""

import fnmatch
import os
import sys
from typing import Any, Dict, List, Set
from unittest.mock import AsyncMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Cheap hashing and instant job steps for the whole test session; must be set
# before cachegate.main loads its configuration
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JOB_STEP_SECONDS", "0")


# =============================================================================
# Time Control
# =============================================================================

class FakeClock:
    """
    Manually advanced replacement for time.time.

    Usage:
        def test_expiry(clock):
            module = CacheModule(redis, clock=clock)
            clock.advance(30)
    """

    def __init__(self, start: float = 1_760_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fake clock starting at a fixed epoch second."""
    return FakeClock()


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a comprehensive mock Redis client for async operations."""
    redis = AsyncMock()

    # Basic operations
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)
    redis.keys = AsyncMock(return_value=[])
    redis.expire = AsyncMock()
    redis.ttl = AsyncMock(return_value=-2)
    redis.incr = AsyncMock(return_value=1)

    # Set operations
    redis.sadd = AsyncMock()
    redis.srem = AsyncMock()
    redis.smembers = AsyncMock(return_value=set())

    # List operations
    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()
    redis.lrange = AsyncMock(return_value=[])

    # Pub/sub
    redis.publish = AsyncMock()

    return redis


def build_memory_redis(clock) -> AsyncMock:
    """
    Redis mock with in-memory data storage for more realistic tests.

    Supports string keys with TTL (SET EX/NX, SETEX), sets and lists.
    Expiry is evaluated lazily against `clock`, so advancing the clock
    makes keys disappear exactly as Redis would.
    """
    strings: Dict[str, Any] = {}
    sets: Dict[str, Set[str]] = {}
    lists: Dict[str, List[str]] = {}
    expiry: Dict[str, float] = {}

    def _expire_if_due(key):
        if key in expiry and clock() >= expiry[key]:
            expiry.pop(key, None)
            strings.pop(key, None)
            sets.pop(key, None)
            lists.pop(key, None)

    def _alive(key) -> bool:
        _expire_if_due(key)
        return key in strings or key in sets or key in lists

    async def mock_set(key, value, ex=None, px=None, nx=False, xx=False, **kwargs):
        if nx and _alive(key):
            return None
        if xx and not _alive(key):
            return None
        strings[key] = value
        if ex is not None:
            expiry[key] = clock() + ex
        elif px is not None:
            expiry[key] = clock() + px / 1000
        else:
            expiry.pop(key, None)
        return True

    async def mock_setex(key, ttl, value):
        return await mock_set(key, value, ex=ttl)

    async def mock_get(key):
        _expire_if_due(key)
        return strings.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if _alive(key):
                strings.pop(key, None)
                sets.pop(key, None)
                lists.pop(key, None)
                expiry.pop(key, None)
                count += 1
        return count

    async def mock_exists(*keys):
        return sum(1 for k in keys if _alive(k))

    async def mock_keys(pattern):
        return [k for k in list(strings) + list(sets) + list(lists)
                if _alive(k) and fnmatch.fnmatch(k, pattern)]

    async def mock_expire(key, seconds):
        if not _alive(key):
            return False
        expiry[key] = clock() + seconds
        return True

    async def mock_ttl(key):
        if not _alive(key):
            return -2
        if key not in expiry:
            return -1
        return int(expiry[key] - clock())

    async def mock_incr(key, amount=1):
        _expire_if_due(key)
        value = int(strings.get(key, 0)) + amount
        strings[key] = str(value)
        return value

    async def mock_sadd(key, *members):
        _expire_if_due(key)
        bucket = sets.setdefault(key, set())
        added = len(set(members) - bucket)
        bucket.update(members)
        return added

    async def mock_srem(key, *members):
        bucket = sets.get(key, set())
        removed = len(bucket & set(members))
        bucket.difference_update(members)
        return removed

    async def mock_smembers(key):
        _expire_if_due(key)
        return set(sets.get(key, set()))

    async def mock_lpush(key, *values):
        bucket = lists.setdefault(key, [])
        for value in values:
            bucket.insert(0, value)
        return len(bucket)

    async def mock_ltrim(key, start, end):
        if key in lists:
            lists[key] = lists[key][start:end + 1 if end != -1 else None]
        return True

    async def mock_lrange(key, start, end):
        return lists.get(key, [])[start:end + 1 if end != -1 else None]

    redis = AsyncMock()
    redis.set = mock_set
    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis.exists = mock_exists
    redis.keys = mock_keys
    redis.expire = mock_expire
    redis.ttl = mock_ttl
    redis.incr = mock_incr
    redis.sadd = mock_sadd
    redis.srem = mock_srem
    redis.smembers = mock_smembers
    redis.lpush = mock_lpush
    redis.ltrim = mock_ltrim
    redis.lrange = mock_lrange
    redis.publish = AsyncMock(return_value=0)

    # Expose for test assertions
    redis._storage = strings
    redis._sets = sets
    redis._lists = lists
    return redis


@pytest.fixture
def mock_redis_with_data(clock):
    """In-memory Redis mock whose TTLs follow the `clock` fixture."""
    return build_memory_redis(clock)


# =============================================================================
# FastAPI Test Client
# =============================================================================

@pytest.fixture
def app_client(mock_redis_with_data, clock):
    """
    TestClient running the full application lifespan against in-memory Redis.

    The cache module's clock is swapped for the fake one so tests can move
    time forward.
    """
    from fastapi.testclient import TestClient

    from cachegate import main
    from cachegate.modules.storage import StorageModule

    with patch.object(StorageModule, "connect", AsyncMock(return_value=mock_redis_with_data)), \
            patch.object(StorageModule, "disconnect", AsyncMock()):
        with TestClient(main.app) as client:
            main.cache_module.clock = clock
            yield client


@pytest.fixture
def register_user(app_client):
    """Register a user through the API and return (user, token)."""

    def _register(
        name: str = "John Doe",
        email: str = "john@example.com",
        password: str = "password123",
    ):
        response = app_client.post(
            "/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "password_confirmation": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], body["token"]

    return _register


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
