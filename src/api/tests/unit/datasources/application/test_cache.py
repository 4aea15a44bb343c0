"""Unit tests for CacheEntry expiry."""

from datasources.application.cache import CacheEntry


class TestCacheEntry:
    """Tests for CacheEntry time arithmetic."""

    def test_create_sets_insert_and_use_time(self):
        """Should stamp both times with the creation instant."""
        entry = CacheEntry.create("value", now=100.0, ttl=30.0)

        assert entry.inserted_at == 100.0
        assert entry.last_used_at == 100.0

    def test_is_not_expired_before_ttl(self):
        """Should be alive until the TTL has fully elapsed."""
        entry = CacheEntry.create("value", now=100.0, ttl=30.0)

        assert not entry.is_expired(129.9)

    def test_is_expired_at_ttl(self):
        """Should expire exactly when the TTL has elapsed."""
        entry = CacheEntry.create("value", now=100.0, ttl=30.0)

        assert entry.is_expired(130.0)

    def test_touch_does_not_extend_lifetime(self):
        """Using an entry should not push back its expiry."""
        entry = CacheEntry.create("value", now=100.0, ttl=30.0)

        entry.touch(125.0)

        assert entry.last_used_at == 125.0
        assert entry.is_expired(130.0)

    def test_expires_in_is_floored_at_zero(self):
        """Should report remaining lifetime, never negative."""
        entry = CacheEntry.create("value", now=100.0, ttl=30.0)

        assert entry.expires_in(110.0) == 20.0
        assert entry.expires_in(500.0) == 0.0
