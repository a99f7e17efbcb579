"""Exception hierarchy for price resolution and valuation."""

from __future__ import annotations


class PricerError(Exception):
    """Base exception for portfolio-pricer errors."""


class PriceFetchError(PricerError):
    """Raised when a single upstream price source fails.

    Covers transport errors, HTTP errors, undecodable JSON and payloads of
    the wrong shape. The resolver catches it per source.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class PriceResolutionError(PricerError):
    """Raised when a refresh produced nothing usable.

    Either every network source that was queried failed, or none of the
    requested ids resolved to a price.
    """

    def __init__(self, message: str, errors: dict[str, Exception] | None = None):
        self.errors = errors or {}
        super().__init__(message)


class HoldingsFileError(PricerError):
    """Raised when a holdings file cannot be parsed."""
