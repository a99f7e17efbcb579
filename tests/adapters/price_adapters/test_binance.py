from decimal import Decimal
from unittest.mock import Mock

import pytest

from portfolio_pricer.adapters.price_adapters.binance import BinanceTickerAdapter
from portfolio_pricer.domain import ProviderKind
from portfolio_pricer.exceptions import PriceFetchError
from portfolio_pricer.settings import PricerSettings

TICKERS = [
    {"symbol": "BTCUSDT", "price": "60000.00000000"},
    {"symbol": "ETHUSDT", "price": "3000.50000000"},
    {"symbol": "XYZUSDT", "price": "0"},
    {"symbol": "BADUSDT", "price": "not-a-number"},
    {"symbol": "NEGUSDT", "price": "-4.2"},
    {"symbol": "ETHBTC", "price": "0.05"},
]


@pytest.fixture
def config():
    return PricerSettings(max_retries=0)


@pytest.fixture
def adapter(config):
    return BinanceTickerAdapter(config)


def _patch_payload(monkeypatch, payload):
    calls = []
    mock_response = Mock()
    mock_response.raise_for_status = Mock()
    mock_response.json = Mock(return_value=payload)

    async def fake_to_thread(*args, **kwargs):
        calls.append((args, kwargs))
        return mock_response

    monkeypatch.setattr("asyncio.to_thread", fake_to_thread)
    return calls


def test_adapter_identity(adapter):
    assert adapter.adapter_name == "binance"
    assert adapter.provider == ProviderKind.EXCHANGE


@pytest.mark.asyncio
async def test_fetch_batch_filters_requested_tickers(monkeypatch, adapter):
    calls = _patch_payload(monkeypatch, TICKERS)

    prices = await adapter.fetch_batch(["BTCUSDT", "ETHUSDT"])

    assert prices == {
        "BTCUSDT": Decimal("60000.00000000"),
        "ETHUSDT": Decimal("3000.50000000"),
    }
    assert len(calls) == 1
    (args, kwargs) = calls[0]
    assert args[1] == adapter.api_url
    assert kwargs["params"] is None


@pytest.mark.asyncio
async def test_fetch_batch_omits_zero_and_invalid_prices(monkeypatch, adapter):
    _patch_payload(monkeypatch, TICKERS)

    prices = await adapter.fetch_batch(["XYZUSDT", "BADUSDT", "NEGUSDT"])

    assert prices == {}


@pytest.mark.asyncio
async def test_fetch_batch_omits_unlisted_tickers(monkeypatch, adapter):
    _patch_payload(monkeypatch, TICKERS)

    prices = await adapter.fetch_batch(["BTCUSDT", "NOPEUSDT"])

    assert list(prices) == ["BTCUSDT"]


@pytest.mark.asyncio
async def test_fetch_batch_skips_malformed_items(monkeypatch, adapter):
    _patch_payload(
        monkeypatch,
        ["junk", {"price": "1"}, {"symbol": 7, "price": "1"}, TICKERS[0]],
    )

    prices = await adapter.fetch_batch(["BTCUSDT"])

    assert prices == {"BTCUSDT": Decimal("60000.00000000")}


@pytest.mark.asyncio
async def test_fetch_batch_rejects_non_list_payload(monkeypatch, adapter):
    _patch_payload(monkeypatch, {"code": -1121, "msg": "Invalid symbol."})

    with pytest.raises(PriceFetchError, match="expected a list of tickers"):
        await adapter.fetch_batch(["BTCUSDT"])


@pytest.mark.asyncio
async def test_fetch_batch_empty_ids_skips_request(monkeypatch, adapter):
    calls = _patch_payload(monkeypatch, TICKERS)

    assert await adapter.fetch_batch([]) == {}
    assert calls == []


def test_uses_configured_endpoint():
    adapter = BinanceTickerAdapter(
        PricerSettings(exchange_api_url="https://binance.mirror.test/ticker")
    )
    assert adapter.api_url == "https://binance.mirror.test/ticker"
