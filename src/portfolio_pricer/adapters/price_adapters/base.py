from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any

import backoff
import requests

from ...constants import RETRYABLE_STATUS_CODES
from ...domain import ProviderKind
from ...exceptions import PriceFetchError
from ...settings import PricerSettings

logger = logging.getLogger(__name__)


def parse_price(value: Any) -> Decimal | None:
    """Parse an upstream price, returning None unless it is positive and finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _is_permanent_http_error(exc: Exception) -> bool:
    return (
        isinstance(exc, requests.exceptions.HTTPError)
        and exc.response is not None
        and exc.response.status_code not in RETRYABLE_STATUS_CODES
    )


class BasePriceAdapter(ABC):
    """Abstract base class for upstream price sources.

    Each source answers one batched request keyed by its own native ids and
    returns USD prices keyed by those same native ids.
    """

    def __init__(self, config: PricerSettings):
        """Initialize the adapter with configuration."""
        self.config = config
        self.timeout = config.request_timeout_seconds
        self.max_retries = config.max_retries

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @property
    @abstractmethod
    def provider(self) -> ProviderKind:
        """Return the registry provider kind this adapter answers for."""
        ...

    @abstractmethod
    async def fetch_batch(self, native_ids: list[str]) -> dict[str, Decimal]:
        """Fetch USD prices for ``native_ids``.

        Ids without a usable price are omitted from the result.

        Raises:
            PriceFetchError: If the request fails or the payload is malformed.
        """
        ...

    async def _http_get(self, url: str, *, params: dict[str, str] | None = None):
        return await asyncio.to_thread(
            requests.get,
            url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )

    async def _get_json(
        self, url: str, *, params: dict[str, str] | None = None
    ) -> Any:
        """GET ``url`` and decode its JSON body, retrying transient failures."""

        def _on_backoff(details: Any) -> None:
            logger.warning(
                "%s request failed (attempt %d of %d): %s",
                self.adapter_name,
                details["tries"],
                self.max_retries + 1,
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_retries + 1,
            giveup=_is_permanent_http_error,
            on_backoff=_on_backoff,
            jitter=backoff.full_jitter,
        )
        async def _get_with_retry():
            logger.debug("Calling %s", url)
            response = await self._http_get(url, params=params)
            response.raise_for_status()
            return response

        try:
            response = await _get_with_retry()
        except requests.exceptions.RequestException as e:
            raise PriceFetchError(self.adapter_name, f"request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise PriceFetchError(self.adapter_name, "invalid JSON in response") from e
