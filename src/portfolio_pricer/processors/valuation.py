from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from ..constants import DEFAULT_SECONDARY_CURRENCY_RATE
from ..domain import (
    CryptoHolding,
    Currency,
    FiatHolding,
    Holding,
    HoldingCategory,
    HoldingValue,
    PortfolioValuation,
)
from ..registry import normalize_asset_id

ZERO = Decimal(0)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def convert_to_usd(
    balance: Decimal,
    currency: Currency,
    *,
    secondary_currency: Currency = Currency.MYR,
    rate: Decimal = DEFAULT_SECONDARY_CURRENCY_RATE,
) -> Decimal:
    """Convert a fiat balance to USD using the fixed secondary-currency rate.

    ``rate`` is units of ``secondary_currency`` per USD. USD, and any currency
    other than the secondary one, is returned unchanged.
    """
    balance = _to_decimal(balance)
    if currency != Currency.USD and currency == secondary_currency:
        return balance / _to_decimal(rate)
    return balance


def calculate_crypto_value(
    quantity: Decimal | None,
    asset_id: str | None,
    prices: Mapping[str, Decimal],
) -> Decimal | None:
    """Return ``quantity * price`` or None when either side is unknown."""
    if quantity is None or not asset_id:
        return None
    price = prices.get(normalize_asset_id(asset_id))
    if price is None:
        return None
    return _to_decimal(quantity) * price


def value_holding(
    holding: Holding,
    prices: Mapping[str, Decimal],
    *,
    secondary_currency: Currency = Currency.MYR,
    rate: Decimal = DEFAULT_SECONDARY_CURRENCY_RATE,
) -> HoldingValue:
    if isinstance(holding, CryptoHolding):
        value = calculate_crypto_value(holding.quantity, holding.asset_id, prices)
        if value is None:
            return HoldingValue(holding=holding, value_usd=ZERO, priced=False)
        return HoldingValue(holding=holding, value_usd=value)

    if isinstance(holding, FiatHolding):
        value = convert_to_usd(
            holding.balance,
            holding.currency,
            secondary_currency=secondary_currency,
            rate=rate,
        )
        return HoldingValue(holding=holding, value_usd=value)

    # External balances are already USD-equivalent
    return HoldingValue(holding=holding, value_usd=_to_decimal(holding.balance))


def value_portfolio(
    holdings: Iterable[Holding],
    prices: Mapping[str, Decimal],
    *,
    secondary_currency: Currency = Currency.MYR,
    rate: Decimal = DEFAULT_SECONDARY_CURRENCY_RATE,
) -> PortfolioValuation:
    """Value every holding in USD and sum them.

    Pure over its inputs. Crypto holdings whose id is absent from ``prices``
    are valued at zero and listed in ``unpriced`` instead of failing the
    whole total. Nothing is rounded here; use ``display_total()`` or
    ``quantize_cents`` at the display edge.
    """
    per_holding: list[HoldingValue] = []
    totals_by_category: dict[HoldingCategory, Decimal] = {}
    unpriced: list[str] = []
    total = ZERO

    for holding in holdings:
        holding_value = value_holding(
            holding, prices, secondary_currency=secondary_currency, rate=rate
        )
        per_holding.append(holding_value)
        total += holding_value.value_usd
        totals_by_category[holding.category] = (
            totals_by_category.get(holding.category, ZERO) + holding_value.value_usd
        )
        if not holding_value.priced and isinstance(holding, CryptoHolding):
            asset_id = normalize_asset_id(holding.asset_id)
            if asset_id not in unpriced:
                unpriced.append(asset_id)

    return PortfolioValuation(
        per_holding=per_holding,
        total=total,
        totals_by_category=totals_by_category,
        unpriced=unpriced,
    )
