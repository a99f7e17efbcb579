"""Load holdings from a TOML file.

Each holding is a ``[[holdings]]`` table::

    [[holdings]]
    kind = "crypto"
    asset_id = "bitcoin"
    quantity = "2.5"

    [[holdings]]
    kind = "fiat"
    balance = "16475"
    currency = "MYR"

    [[holdings]]
    kind = "external"
    balance = "25000"
    label = "Funded account"

Numbers may be given as strings to keep full decimal precision.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from .domain import (
    CryptoHolding,
    Currency,
    ExternalBalanceHolding,
    FiatHolding,
    Holding,
    HoldingCategory,
)
from .exceptions import HoldingsFileError

HOLDING_KINDS = ("fiat", "crypto", "external")


def _parse_decimal(raw: dict[str, Any], key: str, index: int) -> Decimal:
    if key not in raw:
        raise HoldingsFileError(f"holding #{index}: '{key}' is required")
    value = raw[key]
    if isinstance(value, bool):
        raise HoldingsFileError(f"holding #{index}: invalid {key} {value!r}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as e:
        raise HoldingsFileError(f"holding #{index}: invalid {key} {value!r}") from e
    if not parsed.is_finite():
        raise HoldingsFileError(f"holding #{index}: {key} must be finite")
    return parsed


def _parse_category(raw: dict[str, Any], index: int) -> HoldingCategory | None:
    value = raw.get("category")
    if value is None:
        return None
    try:
        return HoldingCategory(str(value).lower())
    except ValueError as e:
        valid = ", ".join(c.value for c in HoldingCategory)
        raise HoldingsFileError(
            f"holding #{index}: invalid category '{value}'. Valid categories: {valid}"
        ) from e


def parse_holding(raw: dict[str, Any], index: int = 0) -> Holding:
    """Parse and validate a single holding table."""
    if not isinstance(raw, dict):
        raise HoldingsFileError(f"holding #{index}: expected a table")

    kind = str(raw.get("kind", "")).lower()
    if kind not in HOLDING_KINDS:
        raise HoldingsFileError(
            f"holding #{index}: invalid kind '{raw.get('kind')}'. "
            f"Must be one of: {', '.join(HOLDING_KINDS)}"
        )

    label = str(raw.get("label", ""))
    category = _parse_category(raw, index)
    extra: dict[str, Any] = {"label": label}
    if category is not None:
        extra["category"] = category

    if kind == "crypto":
        asset_id = raw.get("asset_id")
        if not isinstance(asset_id, str) or not asset_id.strip():
            raise HoldingsFileError(f"holding #{index}: 'asset_id' is required")
        return CryptoHolding(
            asset_id=asset_id.strip().lower(),
            quantity=_parse_decimal(raw, "quantity", index),
            **extra,
        )

    balance = _parse_decimal(raw, "balance", index)
    if kind == "external":
        return ExternalBalanceHolding(balance=balance, **extra)

    currency_raw = str(raw.get("currency", Currency.USD.value)).upper()
    try:
        currency = Currency(currency_raw)
    except ValueError as e:
        valid = ", ".join(c.value for c in Currency)
        raise HoldingsFileError(
            f"holding #{index}: unsupported currency '{currency_raw}'. "
            f"Supported: {valid}"
        ) from e
    return FiatHolding(balance=balance, currency=currency, **extra)


def load_holdings(path: Path) -> list[Holding]:
    """Read every ``[[holdings]]`` table from ``path``.

    Raises:
        HoldingsFileError: If the file is missing, is not valid TOML, or
            contains an invalid holding.
    """
    if not path.exists():
        raise HoldingsFileError(f"Holdings file not found: {path}")

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise HoldingsFileError(f"Invalid TOML in {path}: {e}") from e

    raw_holdings = data.get("holdings", [])
    if not isinstance(raw_holdings, list):
        raise HoldingsFileError("'holdings' must be an array of tables")

    return [parse_holding(raw, index) for index, raw in enumerate(raw_holdings, 1)]
