from __future__ import annotations

from .valuation import (
    calculate_crypto_value,
    convert_to_usd,
    value_holding,
    value_portfolio,
)

__all__ = [
    "calculate_crypto_value",
    "convert_to_usd",
    "value_holding",
    "value_portfolio",
]
