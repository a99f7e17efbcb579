from decimal import Decimal

import pytest

from portfolio_pricer import get_live_prices
from portfolio_pricer.domain import CryptoHolding, Currency, FiatHolding
from portfolio_pricer.pricing import service
from portfolio_pricer.pricing.cache import PriceCache
from portfolio_pricer.settings import PricerSettings


class StubCache:
    def __init__(self, prices):
        self.prices = prices
        self.requests: list[list[str]] = []

    def get_prices(self, asset_ids):
        asset_ids = list(asset_ids)
        self.requests.append(asset_ids)
        return {a: self.prices[a] for a in asset_ids if a in self.prices}


@pytest.fixture(autouse=True)
def reset_default():
    service.reset_default_cache()
    yield
    service.reset_default_cache()


def test_configure_builds_cache_from_settings():
    cache = service.configure(PricerSettings(cache_ttl_seconds=15))

    assert isinstance(cache, PriceCache)
    assert cache.ttl_seconds == 15
    assert service.get_default_cache() is cache


def test_default_cache_is_shared():
    assert service.get_default_cache() is service.get_default_cache()


def test_get_live_prices_reads_default_cache(monkeypatch):
    stub = StubCache({"bitcoin": Decimal("60000")})
    monkeypatch.setattr(service, "get_default_cache", lambda: stub)

    prices = get_live_prices(["bitcoin", "unknown-token"])

    assert prices == {"bitcoin": Decimal("60000")}


def test_price_portfolio_requests_only_crypto_ids():
    stub = StubCache({"bitcoin": Decimal("60000.00")})
    holdings = [
        CryptoHolding(asset_id="bitcoin", quantity=Decimal("2.5")),
        CryptoHolding(asset_id="BITCOIN", quantity=Decimal("0")),
        CryptoHolding(asset_id="unknown-token", quantity=Decimal("10")),
        FiatHolding(balance=Decimal("16475"), currency=Currency.MYR),
        FiatHolding(balance=Decimal("1000.00")),
    ]

    valuation = service.price_portfolio(holdings, cache=stub, settings=PricerSettings())

    assert stub.requests == [["bitcoin", "unknown-token"]]
    assert valuation.display_total() == Decimal("154702.25")
    assert valuation.unpriced == ["unknown-token"]


def test_price_portfolio_without_crypto_skips_cache():
    stub = StubCache({})

    valuation = service.price_portfolio(
        [FiatHolding(balance=Decimal("89"), currency=Currency.MYR)],
        cache=stub,
        settings=PricerSettings(secondary_currency_rate=Decimal("4.45")),
    )

    assert stub.requests == []
    assert valuation.display_total() == Decimal("20.00")
