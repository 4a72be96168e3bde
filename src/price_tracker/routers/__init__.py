"""API routers.

Includes routes for:
- /jobs - Scheduler triggers (price update, alert check)
- /providers - Provider rate-limit budgets
- /quotes - On-demand quotes through the provider chains
"""
from price_tracker.routers.jobs import router as jobs_router
from price_tracker.routers.providers import router as providers_router
from price_tracker.routers.quotes import router as quotes_router

__all__ = [
    "jobs_router",
    "providers_router",
    "quotes_router",
]
