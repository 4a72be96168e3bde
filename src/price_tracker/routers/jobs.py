"""Job trigger routes, called by the scheduler (cron-like, no parameters)."""
import logging

from dependency_injector.wiring import inject
from fastapi import APIRouter

from price_tracker.container import AlertCheckJobDep, PriceUpdateJobDep
from price_tracker.schemas import AlertCheckSummary, PriceUpdateSummary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/price-update", response_model=PriceUpdateSummary)
@inject
async def run_price_update(job: PriceUpdateJobDep) -> PriceUpdateSummary:
    """Refresh prices of every user that is due."""
    return await job.run()


@router.post("/alert-check", response_model=AlertCheckSummary)
@inject
async def run_alert_check(job: AlertCheckJobDep) -> AlertCheckSummary:
    """Evaluate every active alert once."""
    return await job.run()
