from decimal import Decimal
from unittest.mock import Mock

import pytest

from portfolio_pricer.adapters.price_adapters.jupiter import JupiterPriceAdapter
from portfolio_pricer.constants import AGGREGATOR_MINTS
from portfolio_pricer.domain import ProviderKind
from portfolio_pricer.exceptions import PriceFetchError
from portfolio_pricer.settings import PricerSettings

BONK = AGGREGATOR_MINTS["bonk"]
WIF = AGGREGATOR_MINTS["dogwifcoin"]
JUP = AGGREGATOR_MINTS["jup"]


@pytest.fixture
def adapter():
    return JupiterPriceAdapter(PricerSettings(max_retries=0))


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
    assert adapter.adapter_name == "jupiter"
    assert adapter.provider == ProviderKind.AGGREGATOR


@pytest.mark.asyncio
async def test_fetch_batch_reads_nested_price_field(monkeypatch, adapter):
    calls = _patch_payload(
        monkeypatch,
        {
            BONK: {"id": BONK, "price": "0.00002145"},
            WIF: {"id": WIF, "price": "1.87"},
        },
    )

    prices = await adapter.fetch_batch([BONK, WIF])

    assert prices == {BONK: Decimal("0.00002145"), WIF: Decimal("1.87")}
    (args, kwargs) = calls[0]
    assert args[1] == adapter.api_url
    assert kwargs["params"] == {"ids": f"{BONK},{WIF}"}


@pytest.mark.asyncio
async def test_fetch_batch_accepts_data_wrapper_and_usd_price(monkeypatch, adapter):
    _patch_payload(
        monkeypatch,
        {"data": {JUP: {"usdPrice": 0.52}}, "timeTaken": 0.001},
    )

    prices = await adapter.fetch_batch([JUP])

    assert prices == {JUP: Decimal("0.52")}


@pytest.mark.asyncio
async def test_fetch_batch_deduplicates_mints(monkeypatch, adapter):
    calls = _patch_payload(monkeypatch, {WIF: {"price": "1.87"}})

    await adapter.fetch_batch([WIF, WIF])

    assert calls[0][1]["params"] == {"ids": WIF}


@pytest.mark.asyncio
async def test_fetch_batch_omits_missing_null_and_zero_entries(monkeypatch, adapter):
    _patch_payload(
        monkeypatch,
        {BONK: None, WIF: {"price": "0"}},
    )

    prices = await adapter.fetch_batch([BONK, WIF, JUP])

    assert prices == {}


@pytest.mark.asyncio
async def test_fetch_batch_rejects_non_object_payload(monkeypatch, adapter):
    _patch_payload(monkeypatch, [{"price": "1"}])

    with pytest.raises(PriceFetchError, match="expected an object keyed by mint"):
        await adapter.fetch_batch([BONK])
