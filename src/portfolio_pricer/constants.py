"""Static provider tables and upstream endpoint defaults."""

from decimal import Decimal

DEFAULT_EXCHANGE_API_URL = "https://api.binance.com/api/v3/ticker/price"
DEFAULT_AGGREGATOR_API_URL = "https://lite-api.jup.ag/price/v3"

# Canonical id -> Binance spot ticker (USDT quote, treated as USD)
EXCHANGE_TICKERS: dict[str, str] = {
    "bitcoin": "BTCUSDT",
    "ethereum": "ETHUSDT",
    "solana": "SOLUSDT",
    "ripple": "XRPUSDT",
    "xrp": "XRPUSDT",
    "usd-coin": "USDCUSDT",
    "usdc": "USDCUSDT",
    "binancecoin": "BNBUSDT",
    "dogecoin": "DOGEUSDT",
    "cardano": "ADAUSDT",
}

# Canonical id -> Solana mint address, priced through the Jupiter aggregator
AGGREGATOR_MINTS: dict[str, str] = {
    "bonk": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
    "dogwifcoin": "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
    "wif": "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
    "jupiter-exchange-solana": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "jup": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "raydium": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "pyth-network": "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3",
    "jito-governance-token": "jtojtomepa8beP8AuQc6eXt5FriJwfFMwQx2v2f9mCL",
    "orca": "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
}

# Always priced at STABLECOIN_PRICE without a network call
STABLECOIN_ALIASES: frozenset[str] = frozenset({"tether", "usdt"})
STABLECOIN_PRICE = Decimal("1.00")

DEFAULT_CACHE_TTL_SECONDS = 60.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# 1 USD = 4.45 MYR
DEFAULT_SECONDARY_CURRENCY_RATE = Decimal("4.45")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
