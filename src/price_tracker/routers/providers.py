"""Provider status routes."""
from dependency_injector.wiring import inject
from fastapi import APIRouter

from price_tracker.container import RateLimiterDep
from price_tracker.schemas import BudgetStatus

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("/budgets", response_model=list[BudgetStatus])
@inject
async def get_budgets(limiter: RateLimiterDep) -> list[BudgetStatus]:
    """Rate-limit budget of every limited provider window.

    Providers without a configured window are unlimited and not listed.
    """
    return [
        BudgetStatus(
            provider_id=budget.provider_id,
            window_kind=budget.window_kind.value,
            limit=budget.limit,
            count=budget.count,
            remaining=budget.remaining,
            window_reset_at=budget.window_reset_at,
        )
        for budgets in limiter.status_all().values()
        for budget in budgets
    ]
