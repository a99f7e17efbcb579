"""Canonical asset id registry.

Maps the system's own asset ids onto each upstream provider's native
identifier: Binance ticker symbols for the exchange source and Solana mint
addresses for the Jupiter aggregator. Stablecoin aliases short-circuit to a
fixed USD price and never reach either table.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .constants import AGGREGATOR_MINTS, EXCHANGE_TICKERS, STABLECOIN_ALIASES
from .domain import ProviderKind, ProviderMapping
from .settings import RegistrySettings

logger = logging.getLogger(__name__)


def normalize_asset_id(raw: str) -> str:
    """Return the canonical form of an asset id: trimmed and lower-cased."""
    return raw.strip().lower()


def normalize_asset_ids(raw_ids: Iterable[str]) -> list[str]:
    """Normalize ids, dropping empties and duplicates while keeping order."""
    seen: dict[str, None] = {}
    for raw in raw_ids:
        if not isinstance(raw, str):
            logger.debug("Dropping non-string asset id %r", raw)
            continue
        asset_id = normalize_asset_id(raw)
        if not asset_id:
            logger.debug("Dropping empty asset id %r", raw)
            continue
        seen.setdefault(asset_id, None)
    return list(seen)


class AssetRegistry:
    """Static lookup from canonical asset id to provider and native id."""

    def __init__(
        self,
        exchange_tickers: Mapping[str, str] | None = None,
        aggregator_mints: Mapping[str, str] | None = None,
        stablecoins: Iterable[str] | None = None,
    ):
        if exchange_tickers is None:
            exchange_tickers = EXCHANGE_TICKERS
        if aggregator_mints is None:
            aggregator_mints = AGGREGATOR_MINTS
        if stablecoins is None:
            stablecoins = STABLECOIN_ALIASES

        self._exchange_tickers = {
            normalize_asset_id(k): v for k, v in exchange_tickers.items()
        }
        self._aggregator_mints = {
            normalize_asset_id(k): v for k, v in aggregator_mints.items()
        }
        self._stablecoins = frozenset(
            normalize_asset_id(alias) for alias in stablecoins
        )

        overlap = set(self._exchange_tickers) & set(self._aggregator_mints)
        if overlap:
            raise ValueError(
                f"Assets mapped to both exchange and aggregator: {sorted(overlap)}"
            )

    @classmethod
    def from_settings(cls, registry_settings: RegistrySettings) -> "AssetRegistry":
        """Build the default tables extended with configured overrides."""
        return cls(
            exchange_tickers={
                **EXCHANGE_TICKERS,
                **registry_settings.extra_exchange_tickers,
            },
            aggregator_mints={
                **AGGREGATOR_MINTS,
                **registry_settings.extra_aggregator_mints,
            },
            stablecoins=STABLECOIN_ALIASES | set(registry_settings.extra_stablecoins),
        )

    def resolve_provider(self, asset_id: str) -> ProviderMapping | None:
        """Return the provider able to price ``asset_id``, or None."""
        canonical = normalize_asset_id(asset_id)
        if not canonical:
            return None
        if canonical in self._stablecoins:
            return ProviderMapping(ProviderKind.STABLE, canonical)

        ticker = self._exchange_tickers.get(canonical)
        if ticker:
            return ProviderMapping(ProviderKind.EXCHANGE, ticker)

        mint = self._aggregator_mints.get(canonical)
        if mint:
            return ProviderMapping(ProviderKind.AGGREGATOR, mint)

        return None

    def known_ids(self) -> set[str]:
        return (
            set(self._exchange_tickers)
            | set(self._aggregator_mints)
            | set(self._stablecoins)
        )
