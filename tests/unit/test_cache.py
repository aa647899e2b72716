"""
Unit tests for CollectionCache invalidation rules.
"""

from sheetdb.cache import CollectionCache


class TestCollectionCache:
    """Tests for snapshot storage and invalidation."""

    def test_get_missing_returns_none(self):
        assert CollectionCache().get("Users", 0) is None

    def test_snapshots_keyed_by_depth(self):
        cache = CollectionCache()
        cache.put("Users", 0, [{"id": "u1"}])
        assert cache.contains("Users")
        assert not cache.contains("Users", 1)
        assert cache.get("Users", 1) is None

    def test_invalidate_drops_entity_snapshots(self):
        cache = CollectionCache()
        cache.put("Users", 0, [])
        cache.put("Users", 2, [])
        cache.invalidate("Users")
        assert len(cache) == 0

    def test_invalidate_keeps_flat_snapshots_of_other_entities(self):
        cache = CollectionCache()
        cache.put("Orders", 0, [])
        cache.put("Orders", 1, [])
        cache.put("Users", 0, [])

        cache.invalidate("Users")

        assert cache.contains("Orders", 0)
        assert not cache.contains("Orders", 1)
        assert not cache.contains("Users", 0)

    def test_clear(self):
        cache = CollectionCache()
        cache.put("Users", 0, [])
        cache.put("Orders", 0, [])
        cache.clear()
        assert len(cache) == 0
