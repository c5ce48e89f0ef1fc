"""Unit tests for the checkout state cache."""

import time
from unittest.mock import patch

import pytest

from paybridge.core.checkout_state import CheckoutStateCache, CheckoutStateConfig
from paybridge.schemas.payment import OrderSnapshot


@pytest.fixture
def cache() -> CheckoutStateCache:
    return CheckoutStateCache(CheckoutStateConfig(ttl_seconds=60, fresh_seconds=10, max_size=3))


class TestCheckoutStateCache:
    """Tests for CheckoutStateCache."""

    def test_put_and_get(self, cache: CheckoutStateCache) -> None:
        """Test that raw order dicts are stored as snapshots."""
        stored = cache.put("tok-1", {"id": "order-1", "total_amount": 10.0, "extra": "kept"})

        assert isinstance(stored, OrderSnapshot)
        assert cache.get("tok-1") == stored
        assert cache.get("tok-1").model_extra == {"extra": "kept"}

    def test_latest_write_wins(self, cache: CheckoutStateCache) -> None:
        """Test that a second write replaces the first."""
        cache.put("tok-1", {"id": "order-1", "total_amount": 10.0})
        cache.put("tok-1", {"id": "order-1", "total_amount": 7.5})

        assert cache.get("tok-1").total_amount == 7.5

    def test_missing_token(self, cache: CheckoutStateCache) -> None:
        assert cache.get("nope") is None

    def test_expired_entry_is_dropped(self, cache: CheckoutStateCache) -> None:
        """Test that entries past the TTL are not returned."""
        cache.put("tok-1", {"id": "order-1"})

        with patch("paybridge.core.checkout_state.time.time", return_value=time.time() + 61):
            assert cache.get("tok-1") is None

        assert cache.get("tok-1") is None

    def test_fresh_only_skips_stale_entries(self, cache: CheckoutStateCache) -> None:
        """Test that stale snapshots are hidden from fresh reads only."""
        cache.put("tok-1", {"id": "order-1"})

        with patch("paybridge.core.checkout_state.time.time", return_value=time.time() + 30):
            assert cache.get("tok-1", fresh_only=True) is None
            assert cache.get("tok-1") is not None

    def test_discard(self, cache: CheckoutStateCache) -> None:
        cache.put("tok-1", {"id": "order-1"})

        assert cache.discard("tok-1") is True
        assert cache.discard("tok-1") is False
        assert cache.get("tok-1") is None

    def test_eviction_at_max_size(self, cache: CheckoutStateCache) -> None:
        """Test that the oldest entry is evicted when the cache is full."""
        for i in range(3):
            with patch("paybridge.core.checkout_state.time.time", return_value=1000.0 + i):
                cache.put(f"tok-{i}", {"id": f"order-{i}"})

        with patch("paybridge.core.checkout_state.time.time", return_value=1010.0):
            cache.put("tok-3", {"id": "order-3"})
            assert cache.get("tok-0") is None
            assert cache.get("tok-3") is not None

    def test_cleanup_counts_expired(self, cache: CheckoutStateCache) -> None:
        cache.put("tok-1", {"id": "order-1"})
        cache.put("tok-2", {"id": "order-2"})

        with patch("paybridge.core.checkout_state.time.time", return_value=time.time() + 120):
            assert cache.cleanup() == 2


class TestCheckoutStateHandle:
    """Tests for the per-checkout handle."""

    def test_handle_reads_and_writes_its_token(self, cache: CheckoutStateCache) -> None:
        """Test that a handle only sees its own checkout."""
        handle = cache.for_checkout("tok-1")
        cache.put("tok-2", {"id": "other"})

        handle.update_order_cache({"id": "order-1"})

        assert handle.get_fresh_order().id == "order-1"
        assert handle.get_order_snapshot().id == "order-1"
        assert cache.get("tok-2").id == "other"

        handle.discard()
        assert handle.get_order_snapshot() is None


class TestCleanupTask:
    """Tests for the background cleanup task."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, cache: CheckoutStateCache) -> None:
        await cache.start_cleanup_task()
        assert cache._cleanup_task is not None

        await cache.stop_cleanup_task()
        assert cache._cleanup_task is None
