from __future__ import annotations

import logging
from decimal import Decimal

from ...domain import ProviderKind
from ...exceptions import PriceFetchError
from ...settings import PricerSettings
from .base import BasePriceAdapter, parse_price

logger = logging.getLogger(__name__)


class BinanceTickerAdapter(BasePriceAdapter):
    """Adapter for the Binance public spot ticker price endpoint.

    The endpoint is queried without a symbol filter: it returns every tradable
    ticker as ``[{"symbol": "BTCUSDT", "price": "60000.00"}, ...]`` and the
    requested tickers are picked out client-side. USDT-quoted prices are taken
    as USD.
    """

    def __init__(self, config: PricerSettings):
        super().__init__(config)
        self.api_url = config.exchange_api_url

    @property
    def adapter_name(self) -> str:
        return "binance"

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind.EXCHANGE

    def _build_ticker_prices(self, payload: object) -> dict[str, Decimal]:
        if not isinstance(payload, list):
            raise PriceFetchError(
                self.adapter_name,
                f"expected a list of tickers, got {type(payload).__name__}",
            )

        ticker_prices: dict[str, Decimal] = {}
        for item in payload:
            if not isinstance(item, dict):
                continue
            symbol = item.get("symbol")
            price = parse_price(item.get("price"))
            if isinstance(symbol, str) and price is not None:
                ticker_prices[symbol.upper()] = price
        return ticker_prices

    async def fetch_batch(self, native_ids: list[str]) -> dict[str, Decimal]:
        """Fetch USD prices for Binance tickers.

        Args:
            native_ids: Ticker symbols such as ``BTCUSDT``.

        Returns:
            Mapping of requested ticker -> price for tickers present in the
            response with a positive, finite price.

        Raises:
            PriceFetchError: On transport failure or a non-list payload.
        """
        if not native_ids:
            return {}

        payload = await self._get_json(self.api_url)
        ticker_prices = self._build_ticker_prices(payload)
        logger.debug("Received %d Binance tickers", len(ticker_prices))

        prices: dict[str, Decimal] = {}
        for ticker in native_ids:
            price = ticker_prices.get(ticker.upper())
            if price is not None:
                prices[ticker] = price
        return prices
