"""Domain models for prices, holdings and valuations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Union

CENTS = Decimal("0.01")


class Currency(str, Enum):
    USD = "USD"
    MYR = "MYR"


class ProviderKind(str, Enum):
    """Which upstream answers for a canonical asset id."""

    EXCHANGE = "exchange"
    AGGREGATOR = "aggregator"
    STABLE = "stable"


class HoldingCategory(str, Enum):
    CASH = "cash"
    DIGITAL = "digital"
    STABLECOIN = "stablecoin"
    PROP_FIRM = "prop_firm"


@dataclass(frozen=True)
class ProviderMapping:
    """Native identifier of a canonical asset at one provider."""

    provider: ProviderKind
    native_id: str


@dataclass(frozen=True)
class PriceEntry:
    """A USD price for one canonical asset id, stamped with its refresh time."""

    asset_id: str
    price: Decimal
    fetched_at: datetime


@dataclass(frozen=True)
class FiatHolding:
    """A cash balance denominated in USD or the secondary fiat currency."""

    balance: Decimal
    currency: Currency = Currency.USD
    label: str = ""
    category: HoldingCategory = HoldingCategory.CASH


@dataclass(frozen=True)
class CryptoHolding:
    """A token quantity priced through the price cache."""

    asset_id: str
    quantity: Decimal
    label: str = ""
    category: HoldingCategory = HoldingCategory.DIGITAL

    def __post_init__(self) -> None:
        if not self.asset_id or not self.asset_id.strip():
            raise ValueError("CryptoHolding requires a non-empty asset_id")


@dataclass(frozen=True)
class ExternalBalanceHolding:
    """An externally managed balance whose face value is already in USD."""

    balance: Decimal
    label: str = ""
    category: HoldingCategory = HoldingCategory.PROP_FIRM


Holding = Union[FiatHolding, CryptoHolding, ExternalBalanceHolding]


def quantize_cents(value: Decimal) -> Decimal:
    """Round a USD amount to cents for display."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class HoldingValue:
    """USD value of a single holding, unrounded."""

    holding: Holding
    value_usd: Decimal
    priced: bool = True


@dataclass(frozen=True)
class PortfolioValuation:
    """Result of valuing a list of holdings against a price snapshot."""

    per_holding: list[HoldingValue]
    total: Decimal
    totals_by_category: dict[HoldingCategory, Decimal] = field(default_factory=dict)
    unpriced: list[str] = field(default_factory=list)

    @property
    def net_worth(self) -> Decimal:
        """Total excluding prop-firm allocations."""
        return self.total - self.prop_allocation

    @property
    def prop_allocation(self) -> Decimal:
        return self.totals_by_category.get(HoldingCategory.PROP_FIRM, Decimal(0))

    def display_total(self) -> Decimal:
        return quantize_cents(self.total)
