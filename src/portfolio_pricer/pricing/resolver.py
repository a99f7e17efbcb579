"""Multi-source price resolution in canonical asset id space."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from ..adapters import PRICE_ADAPTERS
from ..adapters.price_adapters.base import BasePriceAdapter, parse_price
from ..constants import STABLECOIN_PRICE
from ..domain import ProviderKind
from ..exceptions import PriceFetchError, PriceResolutionError
from ..registry import AssetRegistry, normalize_asset_ids
from ..settings import PricerSettings

logger = logging.getLogger(__name__)


class PriceResolver:
    """Resolve canonical asset ids to USD prices across upstream sources.

    Ids are partitioned by the registry into a stablecoin bucket (priced
    locally) and one bucket per network source. Each source gets a single
    batched request; the sources run concurrently and a failure in one does
    not affect the other.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        adapters: Mapping[ProviderKind, BasePriceAdapter],
    ):
        self.registry = registry
        self.adapters = dict(adapters)

    @classmethod
    def from_settings(cls, settings: PricerSettings) -> "PriceResolver":
        enabled = {
            ProviderKind.EXCHANGE: settings.exchange_enabled,
            ProviderKind.AGGREGATOR: settings.aggregator_enabled,
        }
        adapters: dict[ProviderKind, BasePriceAdapter] = {}
        for adapter_cls in PRICE_ADAPTERS:
            adapter = adapter_cls(settings)
            if enabled.get(adapter.provider, True):
                adapters[adapter.provider] = adapter
            else:
                logger.info("Price source %s is disabled", adapter.adapter_name)
        return cls(AssetRegistry.from_settings(settings.registry), adapters)

    def partition(
        self, asset_ids: Iterable[str]
    ) -> tuple[list[str], dict[ProviderKind, dict[str, str]], list[str]]:
        """Split ids into stablecoins, per-source buckets and unresolved ids.

        Buckets map canonical id -> native id.
        """
        stable: list[str] = []
        buckets: dict[ProviderKind, dict[str, str]] = {}
        unresolved: list[str] = []

        for asset_id in normalize_asset_ids(asset_ids):
            mapping = self.registry.resolve_provider(asset_id)
            if mapping is None:
                unresolved.append(asset_id)
            elif mapping.provider == ProviderKind.STABLE:
                stable.append(asset_id)
            elif mapping.provider not in self.adapters:
                unresolved.append(asset_id)
            else:
                buckets.setdefault(mapping.provider, {})[asset_id] = mapping.native_id

        return stable, buckets, unresolved

    async def _fetch_bucket(
        self, kind: ProviderKind, bucket: dict[str, str]
    ) -> dict[str, Decimal]:
        adapter = self.adapters[kind]
        native_ids = list(dict.fromkeys(bucket.values()))
        logger.debug(
            "Requesting %d native ids from %s", len(native_ids), adapter.adapter_name
        )
        native_prices = await adapter.fetch_batch(native_ids)

        prices: dict[str, Decimal] = {}
        for asset_id, native_id in bucket.items():
            price = parse_price(native_prices.get(native_id))
            if price is None:
                logger.warning(
                    "Price not found for %s (%s) from %s",
                    asset_id,
                    native_id,
                    adapter.adapter_name,
                )
                continue
            prices[asset_id] = price
            logger.debug("%s (%s): $%s", asset_id, native_id, price)
        return prices

    async def resolve(self, asset_ids: Iterable[str]) -> dict[str, Decimal]:
        """Resolve ``asset_ids`` to USD prices.

        Args:
            asset_ids: Canonical asset ids; normalized before lookup.

        Returns:
            Mapping of canonical id -> positive price. Ids that could not be
            priced are absent.

        Raises:
            PriceResolutionError: If every queried source failed, or if none
                of the requested ids resolved.
        """
        requested = normalize_asset_ids(asset_ids)
        if not requested:
            return {}

        stable, buckets, unresolved = self.partition(requested)
        for asset_id in unresolved:
            logger.warning("No price source mapping for: %s", asset_id)

        result: dict[str, Decimal] = {asset_id: STABLECOIN_PRICE for asset_id in stable}

        kinds = list(buckets)
        outcomes = await asyncio.gather(
            *(self._fetch_bucket(kind, buckets[kind]) for kind in kinds),
            return_exceptions=True,
        )

        errors: dict[str, Exception] = {}
        for kind, outcome in zip(kinds, outcomes):
            source = self.adapters[kind].adapter_name
            if isinstance(outcome, PriceFetchError):
                logger.warning("Price source %s failed: %s", source, outcome)
                errors[source] = outcome
                continue
            if isinstance(outcome, Exception):
                logger.error(
                    "Price source %s raised unexpectedly: %r", source, outcome
                )
                errors[source] = outcome
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            result.update(outcome)

        if kinds and len(errors) == len(kinds):
            raise PriceResolutionError(
                f"All price sources failed: {', '.join(sorted(errors))}", errors
            )
        if not result:
            raise PriceResolutionError(
                f"No prices resolved for {len(requested)} requested asset id(s)",
                errors,
            )

        missing = [asset_id for asset_id in requested if asset_id not in result]
        if missing:
            logger.warning("Prices not available for: %s", ", ".join(missing))
        logger.info("Resolved %d of %d asset prices", len(result), len(requested))
        return result
