"""Tests for settings loading and startup credential checks."""
import pytest

from price_tracker.config import DEFAULT_PROVIDER_PRIORITY, Settings
from price_tracker.db import AssetClass, WindowKind
from price_tracker.exceptions import ConfigurationError


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.provider_priority == DEFAULT_PROVIDER_PRIORITY
        assert settings.rate_limits["alpha_vantage"] == {WindowKind.MINUTE: 5, WindowKind.DAY: 25}
        assert "gold_api" not in settings.rate_limits
        assert settings.retry_max_retries == 3

    def test_chains_and_budgets_from_environment(self, monkeypatch):
        monkeypatch.setenv("PROVIDER_PRIORITY", '{"equity": ["yahoo"], "crypto": ["coingecko"]}')
        monkeypatch.setenv("RATE_LIMITS", '{"yahoo": {"minute": 10}}')
        monkeypatch.setenv("RETRY_MAX_RETRIES", "1")

        settings = Settings(_env_file=None)

        assert settings.provider_priority == {
            AssetClass.EQUITY: ["yahoo"],
            AssetClass.CRYPTO: ["coingecko"],
        }
        assert settings.rate_limits == {"yahoo": {WindowKind.MINUTE: 10}}
        assert settings.retry_max_retries == 1

    def test_defaults_are_not_shared_between_instances(self):
        first = Settings(_env_file=None)
        first.provider_priority[AssetClass.EQUITY].append("nope")
        assert Settings(_env_file=None).provider_priority == DEFAULT_PROVIDER_PRIORITY


class TestRequireProviderCredentials:
    def test_lists_every_missing_key(self):
        settings = Settings(_env_file=None, polygon_api_key=None, alpha_vantage_api_key=None,
                            metals_api_key="m")
        with pytest.raises(ConfigurationError) as info:
            settings.require_provider_credentials()
        assert str(info.value) == "Missing API key for provider(s): alpha_vantage, polygon"

    def test_unconfigured_providers_need_no_key(self):
        settings = Settings(
            _env_file=None,
            polygon_api_key=None,
            alpha_vantage_api_key=None,
            metals_api_key=None,
            provider_priority={AssetClass.EQUITY: ["yahoo"], AssetClass.COMMODITY: ["gold_api"]},
        )
        settings.require_provider_credentials()

    def test_all_keys_present(self):
        Settings(_env_file=None, polygon_api_key="p", alpha_vantage_api_key="a",
                 metals_api_key="m").require_provider_credentials()
