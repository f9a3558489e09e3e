"""
Portfolio read-cache package.

A single in-process ``CacheStore`` fronts the persistence layer for public
reads; every acknowledged write removes the entries it made stale. Entries
also carry a TTL so staleness is bounded even when no write happens.
"""

from .cache_store import CacheEntry, CacheStore
from .invalidation import InvalidationCoordinator, WriteKind
from .keys import item_key, list_key
from .read_through import CacheTTL, ReadThroughCache

__all__ = [
    "CacheEntry",
    "CacheStore",
    "CacheTTL",
    "InvalidationCoordinator",
    "ReadThroughCache",
    "WriteKind",
    "item_key",
    "list_key",
]
