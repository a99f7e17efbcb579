from __future__ import annotations

from .base import BasePriceAdapter, parse_price
from .binance import BinanceTickerAdapter
from .jupiter import JupiterPriceAdapter

PRICE_ADAPTERS: list[type[BasePriceAdapter]] = [
    BinanceTickerAdapter,
    JupiterPriceAdapter,
]

__all__ = [
    "PRICE_ADAPTERS",
    "BasePriceAdapter",
    "BinanceTickerAdapter",
    "JupiterPriceAdapter",
    "parse_price",
]
