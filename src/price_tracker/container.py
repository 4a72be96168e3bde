"""DI container. Wire via init_container(); endpoints use Depends(Provide[Container.*])."""
from typing import Annotated

from dependency_injector import containers, providers
from dependency_injector.wiring import Provide
from fastapi import Depends

from price_tracker.config import Settings
from price_tracker.db import SqlModelStore
from price_tracker.db.sessions import create_db_engine
from price_tracker.providers import ProviderRegistry, create_default_registry
from price_tracker.providers.core import (BackoffExecutor, RateLimiter,
                                          RetryConfig)
from price_tracker.services import (AlertCheckJob, AlertEvaluator,
                                    BatchPriceFetcher, FallbackCoordinator,
                                    LoggingEventPublisher, LoggingNotifier,
                                    PriceUpdateJob, UpdateEligibilityGate)
from price_tracker.utils import utcnow


def build_executor(settings: Settings) -> BackoffExecutor:
    return BackoffExecutor(
        RetryConfig(
            max_retries=settings.retry_max_retries,
            initial_delay_s=settings.retry_initial_delay_s,
            multiplier=settings.retry_multiplier,
        )
    )


def build_rate_limiter(settings: Settings, store: SqlModelStore) -> RateLimiter:
    """One limiter per process; budgets go through the store only when asked to."""
    return RateLimiter(
        settings.rate_limits,
        store=store if settings.persist_rate_budgets else None,
    )


def build_coordinator(registry: ProviderRegistry, settings: Settings) -> FallbackCoordinator:
    return FallbackCoordinator(registry.build_chains(settings.provider_priority))


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(
        modules=[
            "price_tracker.routers.jobs",
            "price_tracker.routers.providers",
            "price_tracker.routers.quotes",
        ]
    )

    settings = providers.Singleton(Settings)
    clock = providers.Object(utcnow)

    engine = providers.Singleton(create_db_engine, settings.provided.database_url)
    store = providers.Singleton(SqlModelStore, engine)

    executor = providers.Singleton(build_executor, settings)
    rate_limiter = providers.Singleton(build_rate_limiter, settings, store)
    registry = providers.Singleton(create_default_registry, settings, rate_limiter, executor)
    coordinator = providers.Singleton(build_coordinator, registry, settings)

    notifier = providers.Singleton(LoggingNotifier)
    publisher = providers.Singleton(LoggingEventPublisher)

    eligibility_gate = providers.Singleton(UpdateEligibilityGate, store, clock)
    price_fetcher = providers.Singleton(
        BatchPriceFetcher,
        store=store,
        coordinator=coordinator,
        publisher=publisher,
        clock=clock,
        max_concurrent_users=settings.provided.max_concurrent_users,
    )
    alert_evaluator = providers.Singleton(
        AlertEvaluator,
        store=store,
        notifier=notifier,
        clock=clock,
        max_concurrent_users=settings.provided.max_concurrent_users,
    )

    price_update_job = providers.Singleton(PriceUpdateJob, eligibility_gate, price_fetcher)
    alert_check_job = providers.Singleton(AlertCheckJob, alert_evaluator)


# Type aliases for route injection (avoid repeating Annotated[...] in every route)
PriceUpdateJobDep = Annotated[PriceUpdateJob, Depends(Provide[Container.price_update_job])]
AlertCheckJobDep = Annotated[AlertCheckJob, Depends(Provide[Container.alert_check_job])]
RateLimiterDep = Annotated[RateLimiter, Depends(Provide[Container.rate_limiter])]
CoordinatorDep = Annotated[FallbackCoordinator, Depends(Provide[Container.coordinator])]


def init_container(settings: Settings | None = None) -> Container:
    """Create container and wire to router modules.

    Args:
        settings: Replaces the environment-loaded settings (tests, CLI overrides).
    """
    container = Container()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    container.wire()
    return container
