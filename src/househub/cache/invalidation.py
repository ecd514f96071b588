"""Invalidation sets.

An InvalidationSet names every cache key whose value could be stale after
one mutation. It is computed from the mutation's relationships before the
write runs and is deleted as a whole.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class InvalidationSet:
    """Immutable, de-duplicated, insertion-ordered set of cache keys.

    Accepts single keys and iterables of keys:

        InvalidationSet(CacheKeys.bill(42), CacheKeys.bills_for_home(7))
        InvalidationSet(CacheKeys.home(1), CacheKeys.home_lists(1))
    """

    __slots__ = ("_keys",)

    def __init__(self, *keys: str | Iterable[str]):
        ordered: dict[str, None] = {}
        for item in keys:
            if isinstance(item, str):
                ordered[item] = None
            else:
                for key in item:
                    ordered[key] = None
        self._keys = tuple(ordered)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __or__(self, other: Iterable[str]) -> "InvalidationSet":
        return InvalidationSet(self._keys, other)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, InvalidationSet):
            return set(self._keys) == set(other._keys)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._keys))

    def __repr__(self) -> str:
        return f"InvalidationSet({', '.join(self._keys)})"

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys
