"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    AGGREGATOR_MINTS,
    DEFAULT_AGGREGATOR_API_URL,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_EXCHANGE_API_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SECONDARY_CURRENCY_RATE,
    EXCHANGE_TICKERS,
)
from .domain import Currency

load_dotenv()

CONFIG_ENV_VAR = "PORTFOLIO_PRICER_CONFIG"


def _normalize_keys(mapping: dict[str, str]) -> dict[str, str]:
    return {
        key.strip().lower(): value.strip()
        for key, value in mapping.items()
        if key.strip() and value.strip()
    }


class RegistrySettings(BaseModel):
    """Additive overrides for the static provider tables."""

    extra_exchange_tickers: dict[str, str] = Field(default_factory=dict)
    extra_aggregator_mints: dict[str, str] = Field(default_factory=dict)
    extra_stablecoins: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("extra_exchange_tickers", "extra_aggregator_mints")
    @classmethod
    def normalize_mapping_keys(cls, v: dict[str, str]) -> dict[str, str]:
        return _normalize_keys(v)

    @field_validator("extra_stablecoins")
    @classmethod
    def normalize_stablecoins(cls, v: list[str]) -> list[str]:
        return [alias.strip().lower() for alias in v if alias.strip()]

    @model_validator(mode="after")
    def validate_single_provider(self) -> "RegistrySettings":
        """An asset may be resolvable by at most one provider.

        Checked against the built-in tables merged with the overrides.
        """
        exchange_ids = set(EXCHANGE_TICKERS) | set(self.extra_exchange_tickers)
        aggregator_ids = set(AGGREGATOR_MINTS) | set(self.extra_aggregator_mints)
        overlap = exchange_ids & aggregator_ids
        if overlap:
            raise ValueError(
                f"Assets mapped to both exchange and aggregator: {sorted(overlap)}"
            )
        return self


class PricerSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with PORTFOLIO_PRICER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- cache ---
    cache_ttl_seconds: float = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        gt=0,
        description="Seconds a price snapshot is served without refreshing.",
    )

    # --- upstream sources ---
    exchange_api_url: str = DEFAULT_EXCHANGE_API_URL
    aggregator_api_url: str = DEFAULT_AGGREGATOR_API_URL
    exchange_enabled: bool = True
    aggregator_enabled: bool = True
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0
    )
    max_retries: int = Field(default=2, ge=0)

    # --- fiat conversion ---
    secondary_currency: Currency = Currency.MYR
    secondary_currency_rate: Decimal = Field(
        default=DEFAULT_SECONDARY_CURRENCY_RATE,
        gt=0,
        description="Units of the secondary currency per 1 USD.",
    )

    # --- logging ---
    log_level: str = "INFO"

    # --- registry overrides (from config file only) ---
    registry: RegistrySettings = Field(default_factory=RegistrySettings)

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_PRICER_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_secondary_currency(self) -> "PricerSettings":
        if self.secondary_currency == Currency.USD:
            raise ValueError("secondary_currency must differ from USD")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("portfolio-pricer.toml")
                    user_config = (
                        Path.home() / ".config" / "portfolio-pricer" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [portfolio_pricer]
                body = data.get("portfolio_pricer", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict."""
        return self.model_dump(mode="json")
