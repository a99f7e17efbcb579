from __future__ import annotations

from .cache import PriceCache
from .resolver import PriceResolver
from .service import (
    build_price_cache,
    configure,
    get_default_cache,
    get_live_prices,
    price_portfolio,
    reset_default_cache,
)

__all__ = [
    "PriceCache",
    "PriceResolver",
    "build_price_cache",
    "configure",
    "get_default_cache",
    "get_live_prices",
    "price_portfolio",
    "reset_default_cache",
]
