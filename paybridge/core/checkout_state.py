"""In-memory checkout state cache holding in-progress order snapshots."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Protocol

from paybridge.schemas.payment import OrderSnapshot

logger = logging.getLogger(__name__)


class CheckoutState(Protocol):
    """Checkout state contract the reconciliation controller depends on."""

    def update_order_cache(self, order: OrderSnapshot | dict[str, Any]) -> None: ...

    def get_fresh_order(self) -> OrderSnapshot | None: ...

    def get_order_snapshot(self) -> OrderSnapshot | None: ...


@dataclass
class SnapshotEntry:
    """A cached order snapshot with its write time."""

    order: OrderSnapshot
    updated_at: float
    expires_at: float

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at

    def is_fresh(self, fresh_seconds: int) -> bool:
        """Check if this entry was written recently enough to be authoritative."""
        return time.time() - self.updated_at <= fresh_seconds


@dataclass
class CheckoutStateConfig:
    """Configuration for the checkout state cache."""

    ttl_seconds: int = 3600
    fresh_seconds: int = 120
    cleanup_interval_seconds: int = 300
    max_size: int = 10000

    @classmethod
    def from_settings(cls) -> "CheckoutStateConfig":
        """Create config from application settings."""
        from paybridge.core.config import get_settings
        settings = get_settings()
        return cls(
            ttl_seconds=settings.checkout_state_ttl_seconds,
            fresh_seconds=settings.checkout_state_fresh_seconds,
            cleanup_interval_seconds=settings.checkout_state_cleanup_interval_seconds,
        )


class CheckoutStateCache:
    """Thread-safe store of order snapshots keyed by checkout token.

    Other checkout steps write here too, so every read returns whatever
    was written last.
    """

    def __init__(self, config: CheckoutStateConfig | None = None) -> None:
        self.config = config or CheckoutStateConfig()
        self._entries: dict[str, SnapshotEntry] = {}
        self._lock = Lock()
        self._cleanup_task: asyncio.Task | None = None

    async def start_cleanup_task(self) -> None:
        """Start background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Checkout state cleanup task started")

    async def stop_cleanup_task(self) -> None:
        """Stop background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Checkout state cleanup task stopped")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.cleanup_interval_seconds)
            count = self.cleanup()
            if count > 0:
                logger.debug("Checkout state cache cleaned up %d expired snapshots", count)

    def put(self, checkout_token: str, order: OrderSnapshot | dict[str, Any]) -> OrderSnapshot:
        """Store the latest snapshot for a checkout.

        Args:
            checkout_token: Checkout the snapshot belongs to.
            order: Snapshot or raw order dict.

        Returns:
            OrderSnapshot: The stored snapshot.
        """
        snapshot = order if isinstance(order, OrderSnapshot) else OrderSnapshot.model_validate(order)
        now = time.time()
        with self._lock:
            if checkout_token not in self._entries and len(self._entries) >= self.config.max_size:
                self._evict_oldest()
            self._entries[checkout_token] = SnapshotEntry(
                order=snapshot,
                updated_at=now,
                expires_at=now + self.config.ttl_seconds,
            )
        logger.debug("Stored order snapshot for checkout %s", checkout_token)
        return snapshot

    def get(self, checkout_token: str, fresh_only: bool = False) -> OrderSnapshot | None:
        """Read the snapshot for a checkout.

        Args:
            checkout_token: Checkout to look up.
            fresh_only: Only return snapshots written within the freshness window.

        Returns:
            OrderSnapshot | None: The snapshot, or None if missing, expired or stale.
        """
        with self._lock:
            entry = self._entries.get(checkout_token)
            if entry is None:
                return None
            if entry.is_expired():
                del self._entries[checkout_token]
                return None
            if fresh_only and not entry.is_fresh(self.config.fresh_seconds):
                return None
            return entry.order

    def discard(self, checkout_token: str) -> bool:
        """Drop the snapshot for a finished or abandoned checkout."""
        with self._lock:
            return self._entries.pop(checkout_token, None) is not None

    def _evict_oldest(self) -> None:
        """Evict expired entries, then the oldest 10%. Must be called with lock held."""
        expired_keys = [k for k, v in self._entries.items() if v.is_expired()]
        for key in expired_keys:
            del self._entries[key]

        if len(self._entries) >= self.config.max_size:
            sorted_entries = sorted(self._entries.items(), key=lambda x: x[1].updated_at)
            to_remove = max(1, len(self._entries) // 10)
            for key, _ in sorted_entries[:to_remove]:
                del self._entries[key]
            logger.debug("Evicted %d snapshots from checkout state cache", to_remove)

    def cleanup(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            expired_keys = [k for k, v in self._entries.items() if v.is_expired()]
            for key in expired_keys:
                del self._entries[key]
            return len(expired_keys)

    def for_checkout(self, checkout_token: str) -> CheckoutStateHandle:
        """Bind the cache to one checkout."""
        return CheckoutStateHandle(self, checkout_token)


class CheckoutStateHandle:
    """View of the cache for a single checkout token."""

    def __init__(self, cache: CheckoutStateCache, checkout_token: str) -> None:
        self.cache = cache
        self.checkout_token = checkout_token

    def update_order_cache(self, order: OrderSnapshot | dict[str, Any]) -> None:
        self.cache.put(self.checkout_token, order)

    def get_fresh_order(self) -> OrderSnapshot | None:
        return self.cache.get(self.checkout_token, fresh_only=True)

    def get_order_snapshot(self) -> OrderSnapshot | None:
        return self.cache.get(self.checkout_token)

    def discard(self) -> None:
        self.cache.discard(self.checkout_token)


# Global singleton instance
_checkout_state_cache: CheckoutStateCache | None = None


def get_checkout_state_cache() -> CheckoutStateCache:
    """Get or create the global checkout state cache instance."""
    global _checkout_state_cache
    if _checkout_state_cache is None:
        _checkout_state_cache = CheckoutStateCache(CheckoutStateConfig.from_settings())
    return _checkout_state_cache


async def init_checkout_state_cache() -> CheckoutStateCache:
    """Initialize checkout state cache with cleanup task. Call at app startup."""
    cache = get_checkout_state_cache()
    await cache.start_cleanup_task()
    return cache


async def shutdown_checkout_state_cache() -> None:
    """Shutdown checkout state cleanup task. Call at app shutdown."""
    global _checkout_state_cache
    if _checkout_state_cache:
        await _checkout_state_cache.stop_cleanup_task()
