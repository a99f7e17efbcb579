"""Process-wide entry points used by the rest of the application."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from decimal import Decimal

from ..domain import CryptoHolding, Holding, PortfolioValuation
from ..processors import value_portfolio
from ..registry import normalize_asset_ids
from ..settings import PricerSettings
from .cache import PriceCache
from .resolver import PriceResolver

logger = logging.getLogger(__name__)

_default_cache: PriceCache | None = None
_default_settings: PricerSettings | None = None
_default_lock = threading.Lock()


def build_price_cache(settings: PricerSettings) -> PriceCache:
    """Wire a resolver and cache from settings."""
    resolver = PriceResolver.from_settings(settings)
    return PriceCache(resolver, ttl_seconds=settings.cache_ttl_seconds)


def configure(settings: PricerSettings) -> PriceCache:
    """Replace the process-wide cache with one built from ``settings``."""
    global _default_cache, _default_settings
    with _default_lock:
        _default_settings = settings
        _default_cache = build_price_cache(settings)
        return _default_cache


def reset_default_cache() -> None:
    """Forget the process-wide cache; it is rebuilt on next use."""
    global _default_cache, _default_settings
    with _default_lock:
        _default_cache = None
        _default_settings = None


def get_default_settings() -> PricerSettings:
    global _default_settings
    with _default_lock:
        if _default_settings is None:
            _default_settings = PricerSettings()
        return _default_settings


def get_default_cache() -> PriceCache:
    global _default_cache
    settings = get_default_settings()
    with _default_lock:
        if _default_cache is None:
            _default_cache = build_price_cache(settings)
        return _default_cache


def get_live_prices(asset_ids: Iterable[str]) -> dict[str, Decimal]:
    """Return current USD prices for canonical asset ids.

    Served from the shared cache; never raises for upstream failures.
    """
    return get_default_cache().get_prices(asset_ids)


def crypto_asset_ids(holdings: Iterable[Holding]) -> list[str]:
    return normalize_asset_ids(
        holding.asset_id for holding in holdings if isinstance(holding, CryptoHolding)
    )


def price_portfolio(
    holdings: Iterable[Holding],
    cache: PriceCache | None = None,
    settings: PricerSettings | None = None,
) -> PortfolioValuation:
    """Fetch prices for every crypto holding and value the whole portfolio."""
    holdings = list(holdings)
    settings = settings or get_default_settings()
    cache = cache or get_default_cache()

    asset_ids = crypto_asset_ids(holdings)
    prices = cache.get_prices(asset_ids) if asset_ids else {}
    valuation = value_portfolio(
        holdings,
        prices,
        secondary_currency=settings.secondary_currency,
        rate=settings.secondary_currency_rate,
    )
    if valuation.unpriced:
        logger.warning(
            "Valued %d holding(s) at zero for missing prices: %s",
            len(valuation.unpriced),
            ", ".join(valuation.unpriced),
        )
    return valuation
