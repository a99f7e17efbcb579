"""Multi-source live price cache and portfolio valuation engine."""

from __future__ import annotations

from .pricing import get_live_prices
from .processors import value_portfolio

__all__ = ["get_live_prices", "value_portfolio"]
