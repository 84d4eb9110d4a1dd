"""
Wallet service - the read-through flow shared by every wallet endpoint.

validate -> cache read -> fresh? serve : fetch (evaluates achievements) -> cache write -> serve

Achievements are recomputed on every return, cached or not. With no cache
(store unavailable) every call fetches fresh and reports cached=False; when a
cache factory is given, the store is asked for again on later requests.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable

from gravity_pulse.analytics.achievements import evaluate
from gravity_pulse.analytics.wallet_fetcher import WalletFetcher
from gravity_pulse.chain.models import MAX_STORED_TRANSACTIONS, TX_PREVIEW_LIMIT, TokenHolding, WalletSnapshot
from gravity_pulse.core.exceptions import StoreUnavailableError
from gravity_pulse.database.wallet_cache import DEFAULT_LEADERBOARD_LIMIT, WalletCache, is_fresh
from gravity_pulse.pulse_logging import bind_wallet, get_logger
from gravity_pulse.utils.wallet_utils import require_address

logger = get_logger(__name__)

BACKEND_NAME = "GravityPulse"


class WalletService:
    """Freshness cache + fetcher pair behind the HTTP handlers."""

    def __init__(
        self,
        cache: WalletCache | None,
        fetcher: WalletFetcher,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
        cache_factory: Callable[[], WalletCache | None] | None = None,
    ) -> None:
        """
        Args:
            cache: Snapshot cache, or None to start stateless.
            fetcher: Upstream fetcher used on miss or stale.
            ttl_seconds: Freshness window; defaults to the cache's TTL.
            clock: Source of "now" for freshness checks.
            cache_factory: Called while cache is None to pick up a store that
                was unavailable at startup (it applies its own retry backoff).
        """
        self.cache = cache
        self.fetcher = fetcher
        if ttl_seconds is None:
            ttl_seconds = cache.ttl_seconds if cache is not None else 0
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache_factory = cache_factory

    def _store(self) -> WalletCache | None:
        if self.cache is None and self._cache_factory is not None:
            self.cache = self._cache_factory()
            if self.cache is not None:
                logger.info("wallet_cache_recovered")
        return self.cache

    def get_overview(self, address: str) -> tuple[WalletSnapshot, bool]:
        """
        Return (snapshot, cached) for address.

        Raises:
            InvalidAddressError: if address is malformed (before any I/O).
        """
        key = require_address(address)
        log = bind_wallet(key)
        cache = self._store()

        if cache is not None:
            snapshot = cache.read(key)
            if snapshot is not None and is_fresh(snapshot, now=self._clock(), ttl_seconds=self.ttl_seconds):
                snapshot.achievements = evaluate(snapshot)
                if snapshot.network is None:
                    snapshot.network = self.fetcher.chain_name
                log.debug("wallet_cache_hit")
                return snapshot, True

        snapshot = self.fetcher.fetch(key)
        if cache is not None:
            cache.write(key, snapshot)
        log.debug("wallet_cache_miss")
        return snapshot, False

    def get_transactions(self, address: str, limit: int = TX_PREVIEW_LIMIT) -> list[dict[str, Any]]:
        """Most-recent-first transaction preview, cached-first."""
        limit = max(1, min(int(limit), MAX_STORED_TRANSACTIONS))
        snapshot, _ = self.get_overview(address)
        return snapshot.transactions[:limit]

    def get_tokens(self, address: str) -> list[TokenHolding]:
        snapshot, _ = self.get_overview(address)
        return snapshot.tokens

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[dict[str, Any]]:
        """Top cached wallets by native balance; empty when running without a store."""
        cache = self._store()
        if cache is None:
            return []
        return cache.leaderboard(limit)

    def clear_cache(self, address: str) -> bool:
        """
        Purge the cached snapshot for address.

        Raises:
            InvalidAddressError: malformed address.
            StoreUnavailableError: no store, or the delete failed.
        """
        key = require_address(address)
        cache = self._store()
        if cache is None:
            raise StoreUnavailableError("cache store not configured")
        return cache.purge(key)

    def health(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "status": "ok",
            "now": datetime.now(timezone.utc).isoformat(),
            "backend": BACKEND_NAME,
        }
        body.update(self.fetcher.chain_info())
        return body
