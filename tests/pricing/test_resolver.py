from decimal import Decimal

import pytest

from portfolio_pricer.adapters.price_adapters.base import BasePriceAdapter
from portfolio_pricer.constants import AGGREGATOR_MINTS
from portfolio_pricer.domain import ProviderKind
from portfolio_pricer.exceptions import PriceFetchError, PriceResolutionError
from portfolio_pricer.pricing.resolver import PriceResolver
from portfolio_pricer.registry import AssetRegistry
from portfolio_pricer.settings import PricerSettings

BONK = AGGREGATOR_MINTS["bonk"]
WIF = AGGREGATOR_MINTS["dogwifcoin"]


class FakeAdapter(BasePriceAdapter):
    def __init__(self, name, provider, prices=None, error=None):
        super().__init__(PricerSettings())
        self._name = name
        self._provider = provider
        self.prices = prices or {}
        self.error = error
        self.calls: list[list[str]] = []

    @property
    def adapter_name(self) -> str:
        return self._name

    @property
    def provider(self) -> ProviderKind:
        return self._provider

    async def fetch_batch(self, native_ids):
        self.calls.append(list(native_ids))
        if self.error is not None:
            raise self.error
        return {n: self.prices[n] for n in native_ids if n in self.prices}


@pytest.fixture
def exchange():
    return FakeAdapter(
        "binance",
        ProviderKind.EXCHANGE,
        prices={
            "BTCUSDT": Decimal("60000"),
            "ETHUSDT": Decimal("3000"),
            "XRPUSDT": Decimal("0.5"),
        },
    )


@pytest.fixture
def aggregator():
    return FakeAdapter(
        "jupiter",
        ProviderKind.AGGREGATOR,
        prices={BONK: Decimal("0.00002"), WIF: Decimal("1.87")},
    )


@pytest.fixture
def resolver(exchange, aggregator):
    return PriceResolver(
        AssetRegistry(),
        {ProviderKind.EXCHANGE: exchange, ProviderKind.AGGREGATOR: aggregator},
    )


@pytest.mark.asyncio
async def test_resolve_merges_both_sources(resolver, exchange, aggregator):
    prices = await resolver.resolve(["bitcoin", "bonk", "dogwifcoin", "ethereum"])

    assert prices == {
        "bitcoin": Decimal("60000"),
        "ethereum": Decimal("3000"),
        "bonk": Decimal("0.00002"),
        "dogwifcoin": Decimal("1.87"),
    }
    assert len(exchange.calls) == 1
    assert len(aggregator.calls) == 1


@pytest.mark.asyncio
async def test_resolve_normalizes_ids_and_drops_empties(resolver, exchange):
    prices = await resolver.resolve(["  Bitcoin ", "BITCOIN", "", "   "])

    assert prices == {"bitcoin": Decimal("60000")}
    assert exchange.calls == [["BTCUSDT"]]


@pytest.mark.asyncio
async def test_resolve_excludes_unmapped_ids(resolver):
    prices = await resolver.resolve(["bitcoin", "unknown-token"])

    assert "unknown-token" not in prices
    assert prices == {"bitcoin": Decimal("60000")}


@pytest.mark.asyncio
async def test_stablecoins_never_reach_network(resolver, exchange, aggregator):
    prices = await resolver.resolve(["tether", "USDT"])

    assert prices == {"tether": Decimal("1.00"), "usdt": Decimal("1.00")}
    assert exchange.calls == []
    assert aggregator.calls == []


@pytest.mark.asyncio
async def test_aliases_sharing_native_id_are_requested_once(resolver, exchange, aggregator):
    prices = await resolver.resolve(["ripple", "xrp", "wif", "dogwifcoin"])

    assert exchange.calls == [["XRPUSDT"]]
    assert aggregator.calls == [[WIF]]
    assert prices == {
        "ripple": Decimal("0.5"),
        "xrp": Decimal("0.5"),
        "wif": Decimal("1.87"),
        "dogwifcoin": Decimal("1.87"),
    }


@pytest.mark.asyncio
async def test_exchange_failure_keeps_aggregator_prices(resolver, exchange):
    exchange.error = PriceFetchError("binance", "request failed: timeout")

    prices = await resolver.resolve(["bitcoin", "bonk"])

    assert prices == {"bonk": Decimal("0.00002")}


@pytest.mark.asyncio
async def test_aggregator_failure_keeps_exchange_prices(resolver, aggregator):
    aggregator.error = RuntimeError("unexpected payload")

    prices = await resolver.resolve(["bitcoin", "bonk"])

    assert prices == {"bitcoin": Decimal("60000")}


@pytest.mark.asyncio
async def test_all_sources_failing_raises(resolver, exchange, aggregator):
    exchange.error = PriceFetchError("binance", "boom")
    aggregator.error = PriceFetchError("jupiter", "boom")

    with pytest.raises(PriceResolutionError, match="All price sources failed") as exc_info:
        await resolver.resolve(["bitcoin", "bonk", "tether"])

    assert set(exc_info.value.errors) == {"binance", "jupiter"}


@pytest.mark.asyncio
async def test_nothing_resolving_raises(resolver):
    with pytest.raises(PriceResolutionError, match="No prices resolved"):
        await resolver.resolve(["unknown-token", "cardano"])


@pytest.mark.asyncio
async def test_empty_request_returns_empty_map(resolver, exchange):
    assert await resolver.resolve([]) == {}
    assert exchange.calls == []


@pytest.mark.asyncio
async def test_invalid_prices_from_adapter_are_dropped(resolver, exchange):
    exchange.prices["BTCUSDT"] = Decimal("0")
    exchange.prices["ETHUSDT"] = Decimal("NaN")

    prices = await resolver.resolve(["bitcoin", "ethereum", "ripple"])

    assert prices == {"ripple": Decimal("0.5")}


@pytest.mark.asyncio
async def test_disabled_source_ids_are_unresolved(exchange):
    resolver = PriceResolver(AssetRegistry(), {ProviderKind.EXCHANGE: exchange})

    prices = await resolver.resolve(["bitcoin", "bonk"])

    assert prices == {"bitcoin": Decimal("60000")}


def test_partition_buckets(resolver):
    stable, buckets, unresolved = resolver.partition(
        ["tether", "bitcoin", "bonk", "mystery"]
    )

    assert stable == ["tether"]
    assert buckets == {
        ProviderKind.EXCHANGE: {"bitcoin": "BTCUSDT"},
        ProviderKind.AGGREGATOR: {"bonk": BONK},
    }
    assert unresolved == ["mystery"]


def test_from_settings_respects_disabled_sources():
    resolver = PriceResolver.from_settings(
        PricerSettings(aggregator_enabled=False)
    )

    assert set(resolver.adapters) == {ProviderKind.EXCHANGE}
    assert resolver.adapters[ProviderKind.EXCHANGE].adapter_name == "binance"
