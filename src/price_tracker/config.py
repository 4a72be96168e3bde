"""
Application configuration.

Loads settings from environment variables and .env file. Provider chains and
rate-limit budgets are configuration, not code: reorder a chain or change a
budget here (or through the environment, as JSON) without touching a client.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from price_tracker.db.models import AssetClass, WindowKind
from price_tracker.exceptions import ConfigurationError

DEFAULT_PROVIDER_PRIORITY: dict[AssetClass, list[str]] = {
    AssetClass.EQUITY: ["polygon", "alpha_vantage", "yahoo"],
    AssetClass.CRYPTO: ["coingecko"],
    AssetClass.COMMODITY: ["metals_api", "gold_api"],
}

# Providers absent from this mapping are unlimited (gold_api).
DEFAULT_RATE_LIMITS: dict[str, dict[WindowKind, int]] = {
    "polygon": {WindowKind.MINUTE: 5},
    "alpha_vantage": {WindowKind.MINUTE: 5, WindowKind.DAY: 25},
    "coingecko": {WindowKind.MINUTE: 30},
    "metals_api": {WindowKind.MONTH: 50},
    "yahoo": {WindowKind.MINUTE: 60},
}


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        database_url: SQLAlchemy URL of the store.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        request_timeout_s: Timeout of every outbound provider request.
        retry_max_retries: Retries after the first attempt of a provider call.
        retry_initial_delay_s: Delay before the first retry.
        retry_multiplier: Growth factor of the delay between retries.
        max_concurrent_users: Users refreshed or checked at the same time.
        max_concurrent_requests: In-flight requests per provider.
        provider_priority: Asset class -> ordered provider ids.
        rate_limits: Provider id -> {window kind: calls per window}.
        persist_rate_budgets: Keep rate-limit counters in the database.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///price_tracker.db"
    log_level: str = "INFO"

    polygon_api_key: str | None = None
    alpha_vantage_api_key: str | None = None
    coingecko_api_key: str | None = None
    coingecko_use_pro_api: bool = False
    metals_api_key: str | None = None

    request_timeout_s: float = 10.0
    retry_max_retries: int = 3
    retry_initial_delay_s: float = 1.0
    retry_multiplier: float = 2.0
    max_concurrent_users: int = 4
    max_concurrent_requests: int = 5

    provider_priority: dict[AssetClass, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PROVIDER_PRIORITY.items()}
    )
    rate_limits: dict[str, dict[WindowKind, int]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_RATE_LIMITS.items()}
    )
    persist_rate_budgets: bool = False

    def provider_credentials(self) -> dict[str, str | None]:
        """Credential of every provider that cannot run without one."""
        return {
            "polygon": self.polygon_api_key,
            "alpha_vantage": self.alpha_vantage_api_key,
            "metals_api": self.metals_api_key,
        }

    def require_provider_credentials(self) -> None:
        """Fail fast when a configured chain names a provider without its key.

        Raises:
            ConfigurationError: Listing every provider whose key is missing.
        """
        configured = {pid for chain in self.provider_priority.values() for pid in chain}
        missing = sorted(
            pid
            for pid, key in self.provider_credentials().items()
            if pid in configured and not key
        )
        if missing:
            raise ConfigurationError(f"Missing API key for provider(s): {', '.join(missing)}")
