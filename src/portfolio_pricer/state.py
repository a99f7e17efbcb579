"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .pricing import PriceCache
from .settings import PricerSettings


@dataclass
class AppState:
    """Container for the CLI's settings, logger and price cache.

    Passed to commands to avoid global state and enable testing.
    """

    settings: PricerSettings
    logger: logging.Logger
    cache: PriceCache
