"""
Cache Module - Black Box Interface

Purpose: Hold one time-limited record behind a fixed key
Interface: probe_or_create(), probe(), remaining_seconds(), clear(), stats()
Hidden: Redis storage, id generation, expiry arithmetic

Replaceable with any store offering get / set-with-ttl / delete on one key.
"""

from .cache import CacheEntry, CacheModule, StorageUnavailable, progress_percentage

__all__ = ["CacheEntry", "CacheModule", "StorageUnavailable", "progress_percentage"]
