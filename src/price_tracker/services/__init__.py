"""Service layer: provider fallback, price refresh, alert evaluation and jobs."""
from price_tracker.services.alert_evaluator import (AlertEvaluator,
                                                    ConditionResult,
                                                    check_maturity_reminder,
                                                    check_percentage_change,
                                                    check_price_target)
from price_tracker.services.eligibility import UpdateEligibilityGate
from price_tracker.services.fallback_coordinator import FallbackCoordinator
from price_tracker.services.jobs import (AlertCheckJob, PriceUpdateJob,
                                         build_run_summary)
from price_tracker.services.notifications import (ChangeEventPublisher,
                                                  LoggingEventPublisher,
                                                  LoggingNotifier, Notifier)
from price_tracker.services.price_fetcher import BatchPriceFetcher

__all__ = [
    "AlertCheckJob",
    "AlertEvaluator",
    "BatchPriceFetcher",
    "ChangeEventPublisher",
    "ConditionResult",
    "FallbackCoordinator",
    "LoggingEventPublisher",
    "LoggingNotifier",
    "Notifier",
    "PriceUpdateJob",
    "UpdateEligibilityGate",
    "build_run_summary",
    "check_maturity_reminder",
    "check_percentage_change",
    "check_price_target",
]
