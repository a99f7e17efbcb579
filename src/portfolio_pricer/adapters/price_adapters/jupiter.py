from __future__ import annotations

import logging
from decimal import Decimal

from ...domain import ProviderKind
from ...exceptions import PriceFetchError
from ...settings import PricerSettings
from .base import BasePriceAdapter, parse_price

logger = logging.getLogger(__name__)


class JupiterPriceAdapter(BasePriceAdapter):
    """Adapter for the Jupiter price API, keyed by Solana mint address.

    One GET with ``ids=<mint>,<mint>,...`` returns an object keyed by mint
    address. Both the flat layout (``{mint: {"usdPrice": ...}}``) and the
    wrapped layout (``{"data": {mint: {"price": ...}}}``) are accepted.
    Unknown mints come back missing or as ``null``.
    """

    def __init__(self, config: PricerSettings):
        super().__init__(config)
        self.api_url = config.aggregator_api_url

    @property
    def adapter_name(self) -> str:
        return "jupiter"

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind.AGGREGATOR

    def _extract_entries(self, payload: object) -> dict[str, object]:
        if not isinstance(payload, dict):
            raise PriceFetchError(
                self.adapter_name,
                f"expected an object keyed by mint, got {type(payload).__name__}",
            )
        data = payload.get("data")
        if isinstance(data, dict):
            return data
        return payload

    @staticmethod
    def _entry_price(entry: object) -> Decimal | None:
        if not isinstance(entry, dict):
            return None
        raw = entry.get("price")
        if raw is None:
            raw = entry.get("usdPrice")
        return parse_price(raw)

    async def fetch_batch(self, native_ids: list[str]) -> dict[str, Decimal]:
        """Fetch USD prices for Solana mint addresses.

        Args:
            native_ids: Mint addresses; duplicates are requested once.

        Returns:
            Mapping of mint -> price for mints with a positive, finite price.

        Raises:
            PriceFetchError: On transport failure or a non-object payload.
        """
        mints = list(dict.fromkeys(native_ids))
        if not mints:
            return {}

        payload = await self._get_json(self.api_url, params={"ids": ",".join(mints)})
        entries = self._extract_entries(payload)
        logger.debug("Received %d Jupiter price entries", len(entries))

        prices: dict[str, Decimal] = {}
        for mint in mints:
            price = self._entry_price(entries.get(mint))
            if price is not None:
                prices[mint] = price
        return prices
