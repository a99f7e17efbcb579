from __future__ import annotations

from .formatter import format_prices_table, format_valuation_table, valuation_as_dict

__all__ = [
    "format_prices_table",
    "format_valuation_table",
    "valuation_as_dict",
]
