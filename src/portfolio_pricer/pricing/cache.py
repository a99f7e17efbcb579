"""Shared time-bounded price cache with stale fallback."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from decimal import Decimal

from ..domain import PriceEntry
from ..exceptions import PriceResolutionError
from ..registry import normalize_asset_ids
from .resolver import PriceResolver

logger = logging.getLogger(__name__)


class PriceCache:
    """Price snapshot shared by every valuation request.

    Freshness is tracked for the snapshot as a whole: a single refresh clock
    covers every stored entry. While fresh, reads that hit at least one
    stored id are answered from memory. A read that hits nothing, or any
    read once stale, asks the resolver for the full requested id
    set and replaces the snapshot. If that refresh fails outright, the old
    snapshot is kept and served as-is.

    Refreshes are serialized by a lock, so concurrent stale reads trigger a
    single upstream refresh and later callers read its result.

    ``get_prices`` drives the async resolver on its own event loop and must
    not be called from a running loop; coroutines use ``get_prices_async``.
    """

    def __init__(
        self,
        resolver: PriceResolver,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._resolver = resolver
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, PriceEntry] = {}
        self._refreshed_at_clock: float | None = None
        self._last_refresh_at: datetime | None = None

    @property
    def resolver(self) -> PriceResolver:
        return self._resolver

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def last_refresh_at(self) -> datetime | None:
        """Wall-clock time of the last successful refresh."""
        return self._last_refresh_at

    @property
    def is_fresh(self) -> bool:
        return self._seconds_until_expiry() > 0

    def _seconds_until_expiry(self) -> float:
        if self._refreshed_at_clock is None:
            return 0.0
        return self._ttl - (self._clock() - self._refreshed_at_clock)

    def _select(self, asset_ids: list[str]) -> dict[str, Decimal]:
        entries = self._entries
        return {
            asset_id: entries[asset_id].price
            for asset_id in asset_ids
            if asset_id in entries
        }

    def get_prices(self, asset_ids: Iterable[str]) -> dict[str, Decimal]:
        """Return USD prices for ``asset_ids``.

        Never raises for upstream failures: on a failed refresh the previous
        snapshot is served, and with no snapshot at all the result is empty.
        Ids without a known price are absent from the result.
        """
        requested = normalize_asset_ids(asset_ids)
        if not requested:
            return {}

        with self._lock:
            remaining = self._seconds_until_expiry()
            if remaining > 0:
                cached = self._select(requested)
                if cached:
                    logger.debug("Using cached prices (expires in %.0fs)", remaining)
                    return cached
                logger.debug("No requested id is cached, refreshing early")
            return self._refresh(requested)

    async def get_prices_async(self, asset_ids: Iterable[str]) -> dict[str, Decimal]:
        return await asyncio.to_thread(self.get_prices, list(asset_ids))

    def _refresh(self, requested: list[str]) -> dict[str, Decimal]:
        logger.info("Refreshing prices for %d asset id(s)", len(requested))
        try:
            prices = asyncio.run(self._resolver.resolve(requested))
        except PriceResolutionError as e:
            if self._entries:
                logger.warning("Price refresh failed, serving stale prices: %s", e)
            else:
                logger.error("Price refresh failed and no cached prices exist: %s", e)
            return self._select(requested)

        fetched_at = datetime.now(timezone.utc)
        self._entries = {
            asset_id: PriceEntry(asset_id=asset_id, price=price, fetched_at=fetched_at)
            for asset_id, price in prices.items()
        }
        self._refreshed_at_clock = self._clock()
        self._last_refresh_at = fetched_at
        return self._select(requested)

    def snapshot(self) -> dict[str, PriceEntry]:
        """Return a copy of the stored entries."""
        with self._lock:
            return dict(self._entries)

    def invalidate(self) -> None:
        """Drop the whole snapshot; the next read refreshes."""
        with self._lock:
            self._entries = {}
            self._refreshed_at_clock = None
            self._last_refresh_at = None
