"""CLI entrypoint for portfolio-pricer."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from .exceptions import HoldingsFileError
from .holdings_loader import load_holdings
from .logger import setup_logging
from .pricing import build_price_cache, price_portfolio
from .registry import normalize_asset_ids
from .report import format_prices_table, format_valuation_table, valuation_as_dict
from .settings import CONFIG_ENV_VAR, PricerSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Live crypto prices and portfolio valuation.",
)


def _build_logger() -> logging.Logger:
    return logging.getLogger("portfolio_pricer")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise typer.BadParameter("CLI state was not initialised")
    return state


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [portfolio_pricer] table).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    ttl: Annotated[
        float | None,
        typer.Option("--ttl", help="Price cache time-to-live in seconds."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-request upstream timeout in seconds."),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config and exit.",
        ),
    ] = False,
):
    """Load configuration and wire the shared price cache for subcommands."""
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    init_kwargs: dict[str, str | float] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if ttl is not None:
        init_kwargs["cache_ttl_seconds"] = ttl
    if timeout is not None:
        init_kwargs["request_timeout_seconds"] = timeout

    try:
        settings = PricerSettings(**init_kwargs)
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e

    if show_config:
        typer.echo(json.dumps(settings.as_dict(), indent=2))
        raise typer.Exit(code=0)

    setup_logging(settings.log_level)
    ctx.obj = AppState(
        settings=settings,
        logger=_build_logger(),
        cache=build_price_cache(settings),
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def prices(
    ctx: typer.Context,
    asset_ids: Annotated[
        list[str], typer.Argument(help="Canonical asset ids, e.g. bitcoin solana.")
    ],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print raw JSON instead of a table.")
    ] = False,
):
    """Fetch live USD prices for canonical asset ids."""
    state = _state(ctx)
    requested = normalize_asset_ids(asset_ids)
    if not requested:
        raise typer.BadParameter("at least one non-empty asset id is required")

    live_prices = state.cache.get_prices(requested)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "prices": {k: str(v) for k, v in live_prices.items()},
                    "unavailable": [a for a in requested if a not in live_prices],
                },
                indent=2,
            )
        )
    else:
        format_prices_table(requested, live_prices, state.cache.resolver.registry)

    if not live_prices:
        raise typer.Exit(code=1)


@app.command()
def value(
    ctx: typer.Context,
    holdings_path: Annotated[
        Path, typer.Argument(help="TOML file with [[holdings]] tables.")
    ],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print raw JSON instead of a table.")
    ] = False,
):
    """Value a portfolio of holdings in USD."""
    state = _state(ctx)
    try:
        holdings = load_holdings(holdings_path)
    except HoldingsFileError as e:
        raise typer.BadParameter(str(e), param_hint="HOLDINGS_PATH") from e

    state.logger.info("Valuing %d holding(s)", len(holdings))
    valuation = price_portfolio(holdings, cache=state.cache, settings=state.settings)

    if as_json:
        typer.echo(json.dumps(valuation_as_dict(valuation), indent=2))
    else:
        format_valuation_table(valuation)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
