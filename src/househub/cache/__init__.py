"""Cache layer for HouseHub.

Provides the cache-aside pattern over a byte store:
- Typed accessor that turns every failure into a miss
- Deterministic, injective key scheme
- Invalidation sets computed per mutation
- TTL-based expiration bounds any remaining staleness
"""

from househub.cache.accessor import Hit, Miss, MissReason, TypedCache
from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys, CacheKind, CacheRelation
from househub.cache.store import CacheStore, InMemoryCacheStore

__all__ = [
    "CacheAside",
    "CacheKeys",
    "CacheKind",
    "CacheRelation",
    "CacheStore",
    "Hit",
    "InMemoryCacheStore",
    "InvalidationSet",
    "Miss",
    "MissReason",
    "TypedCache",
]
