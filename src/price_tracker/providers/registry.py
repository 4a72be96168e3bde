"""
Provider registry: central catalog of available price providers.

Providers are registered by id with a zero-argument factory. Chains are
config-driven: ``Settings.provider_priority`` decides which providers are
tried, in what order, for each asset class.
"""
import logging
from collections.abc import Callable, Mapping
from functools import partial

from price_tracker.config import Settings
from price_tracker.db.models import AssetClass
from price_tracker.providers.commodities import (GoldApiProvider,
                                                 MetalsApiProvider)
from price_tracker.providers.core import (BackoffExecutor, QuoteProviderABC,
                                          RateLimiter)
from price_tracker.providers.crypto import CoinGeckoProvider
from price_tracker.providers.stocks import (AlphaVantageProvider,
                                            PolygonProvider, YFinanceProvider)

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], QuoteProviderABC]


class ProviderRegistry:
    """Maps provider ids to factories and keeps one instance per id.

    Usage:
        registry = ProviderRegistry()
        registry.register("polygon", partial(PolygonProvider, api_key=key))
        chain = registry.build_chain(["polygon", "alpha_vantage"])
    """

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory | QuoteProviderABC] = {}
        self._instances: dict[str, QuoteProviderABC] = {}

    def register(self, provider_id: str, factory: ProviderFactory | QuoteProviderABC) -> None:
        """Register a provider factory (or a ready instance) under ``provider_id``."""
        self._factories[provider_id] = factory
        logger.debug("Registered provider: %s", provider_id)

    def get(self, provider_id: str) -> QuoteProviderABC:
        """Get or instantiate a provider by id."""
        if provider_id not in self._instances:
            factory = self._factories.get(provider_id)
            if factory is None:
                raise KeyError(
                    f"Unknown provider '{provider_id}'. Available: {list(self._factories)}"
                )
            if isinstance(factory, QuoteProviderABC):
                self._instances[provider_id] = factory
            else:
                self._instances[provider_id] = factory()
        return self._instances[provider_id]

    @property
    def names(self) -> list[str]:
        return list(self._factories)

    def build_chain(self, priority: list[str]) -> list[QuoteProviderABC]:
        """Ordered providers for a priority list; unknown ids are skipped with a warning."""
        chain: list[QuoteProviderABC] = []
        for provider_id in priority:
            if provider_id not in self._factories:
                logger.warning("Ignoring unknown provider '%s' in priority list", provider_id)
                continue
            chain.append(self.get(provider_id))
        return chain

    def build_chains(
        self, priority: Mapping[AssetClass, list[str]]
    ) -> dict[AssetClass, list[QuoteProviderABC]]:
        return {
            AssetClass(asset_class): self.build_chain(ids)
            for asset_class, ids in priority.items()
        }

    async def close(self) -> None:
        """Close every instantiated provider."""
        for provider in self._instances.values():
            await provider.close()
        self._instances.clear()


def create_default_registry(
    settings: Settings,
    limiter: RateLimiter | None = None,
    executor: BackoffExecutor | None = None,
) -> ProviderRegistry:
    """Create a registry with all built-in providers sharing one limiter and executor."""
    common = {
        "limiter": limiter,
        "executor": executor,
        "timeout_s": settings.request_timeout_s,
        "max_concurrent_requests": settings.max_concurrent_requests,
    }
    registry = ProviderRegistry()
    registry.register("polygon", partial(PolygonProvider, api_key=settings.polygon_api_key, **common))
    registry.register(
        "alpha_vantage",
        partial(AlphaVantageProvider, api_key=settings.alpha_vantage_api_key, **common),
    )
    registry.register("yahoo", partial(YFinanceProvider, **common))
    registry.register(
        "coingecko",
        partial(
            CoinGeckoProvider,
            api_key=settings.coingecko_api_key,
            use_pro_api=settings.coingecko_use_pro_api,
            **common,
        ),
    )
    registry.register("metals_api", partial(MetalsApiProvider, api_key=settings.metals_api_key, **common))
    registry.register("gold_api", partial(GoldApiProvider, **common))
    return registry
