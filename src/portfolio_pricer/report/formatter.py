"""Rich console formatting for price lookups and portfolio valuations."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import (
    CryptoHolding,
    ExternalBalanceHolding,
    FiatHolding,
    Holding,
    HoldingValue,
    PortfolioValuation,
    quantize_cents,
)
from ..registry import AssetRegistry


def _format_usd(value: Decimal) -> str:
    return f"${quantize_cents(value):,}"


def _format_price(price: Decimal) -> str:
    """Show sub-dollar prices with enough digits to be useful."""
    if price >= 1:
        return f"${price:,.2f}"
    return f"${price:.8f}".rstrip("0").rstrip(".")


def describe_holding(holding: Holding) -> str:
    if isinstance(holding, CryptoHolding):
        return f"{holding.quantity} {holding.asset_id}"
    if isinstance(holding, FiatHolding):
        return f"{holding.balance} {holding.currency.value}"
    return f"{holding.balance} USD (external)"


def _holding_kind(holding: Holding) -> str:
    if isinstance(holding, CryptoHolding):
        return "crypto"
    if isinstance(holding, ExternalBalanceHolding):
        return "external"
    return "fiat"


def format_prices_table(
    requested: list[str],
    prices: Mapping[str, Decimal],
    registry: AssetRegistry,
    console: Console | None = None,
) -> None:
    """Print a table of requested ids with their source and price."""
    console = console or Console()

    table = Table(expand=False)
    table.add_column("Asset", style="cyan", no_wrap=True)
    table.add_column("Source", style="dim")
    table.add_column("Native Id", style="dim")
    table.add_column("Price (USD)", justify="right", style="green")

    for asset_id in requested:
        mapping = registry.resolve_provider(asset_id)
        source = mapping.provider.value if mapping else "[red]unmapped[/]"
        native_id = mapping.native_id if mapping else ""
        price = prices.get(asset_id)
        price_display = _format_price(price) if price is not None else "[dim]<N/A>[/]"
        table.add_row(asset_id, source, native_id, price_display)

    console.print(Panel(table, title="[bold]Live Prices[/]", border_style="cyan"))


def format_valuation_table(
    valuation: PortfolioValuation, console: Console | None = None
) -> None:
    """Print per-holding USD values followed by category and overall totals."""
    console = console or Console()

    holding_table = Table(expand=True)
    holding_table.add_column("Holding", style="cyan")
    holding_table.add_column("Kind", style="dim")
    holding_table.add_column("Category", style="dim")
    holding_table.add_column("Amount", justify="right")
    holding_table.add_column("Value (USD)", justify="right", style="green")

    for item in valuation.per_holding:
        holding = item.holding
        value_display = (
            _format_usd(item.value_usd) if item.priced else "[yellow]no price[/]"
        )
        holding_table.add_row(
            holding.label or "-",
            _holding_kind(holding),
            holding.category.value,
            describe_holding(holding),
            value_display,
        )
    holding_table.add_row(
        "[bold]TOTAL[/]", "", "", "", f"[bold]{_format_usd(valuation.total)}[/]"
    )

    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="green")
    for category, subtotal in valuation.totals_by_category.items():
        summary_table.add_row(category.value, _format_usd(subtotal))
    summary_table.add_row("net worth (excl. prop firm)", _format_usd(valuation.net_worth))
    if valuation.unpriced:
        summary_table.add_row("unpriced", ", ".join(valuation.unpriced), style="yellow")

    console.print(
        Panel(
            Group(holding_table, "", summary_table),
            title="[bold white]Portfolio Valuation[/]",
            border_style="white",
        )
    )


def _holding_value_as_dict(item: HoldingValue) -> dict[str, Any]:
    holding = item.holding
    data: dict[str, Any] = {
        "kind": _holding_kind(holding),
        "label": holding.label,
        "category": holding.category.value,
        "value_usd": str(quantize_cents(item.value_usd)),
        "priced": item.priced,
    }
    if isinstance(holding, CryptoHolding):
        data["asset_id"] = holding.asset_id
        data["quantity"] = str(holding.quantity)
    else:
        data["balance"] = str(holding.balance)
    if isinstance(holding, FiatHolding):
        data["currency"] = holding.currency.value
    return data


def valuation_as_dict(valuation: PortfolioValuation) -> dict[str, Any]:
    """JSON-friendly form of a valuation, rounded to cents."""
    return {
        "holdings": [_holding_value_as_dict(item) for item in valuation.per_holding],
        "totals_by_category": {
            category.value: str(quantize_cents(subtotal))
            for category, subtotal in valuation.totals_by_category.items()
        },
        "net_worth": str(quantize_cents(valuation.net_worth)),
        "total": str(valuation.display_total()),
        "unpriced": list(valuation.unpriced),
    }
