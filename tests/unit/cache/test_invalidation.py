"""Tests for invalidation sets."""

from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys


class TestInvalidationSet:
    """Test InvalidationSet construction and set semantics."""

    def test_flattens_keys_and_iterables(self) -> None:
        keys = InvalidationSet(CacheKeys.home(1), CacheKeys.home_lists(1))

        assert len(keys) == 8
        assert keys.keys[0] == CacheKeys.home(1)

    def test_deduplicates_preserving_order(self) -> None:
        keys = InvalidationSet("a", "b", ["a", "c"], "b")

        assert list(keys) == ["a", "b", "c"]

    def test_union(self) -> None:
        keys = InvalidationSet("a") | ["b", "a"]

        assert isinstance(keys, InvalidationSet)
        assert list(keys) == ["a", "b"]

    def test_equality_ignores_order(self) -> None:
        assert InvalidationSet("a", "b") == InvalidationSet("b", "a")
        assert hash(InvalidationSet("a", "b")) == hash(InvalidationSet("b", "a"))
        assert InvalidationSet("a") != InvalidationSet("a", "b")

    def test_contains(self) -> None:
        keys = InvalidationSet(CacheKeys.bill(42), CacheKeys.bills_for_home(7))

        assert CacheKeys.bill(42) in keys
        assert CacheKeys.bill(43) not in keys

    def test_empty(self) -> None:
        assert len(InvalidationSet()) == 0
