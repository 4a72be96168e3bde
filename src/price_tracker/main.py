"""Main module for the price tracking service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from price_tracker.container import init_container
from price_tracker.db.sessions import init_db
from price_tracker.logging_config import configure_logging
from price_tracker.routers import jobs_router, providers_router, quotes_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create tables and the container at startup; close provider clients on shutdown."""
    container = getattr(fastapi_app.state, "container", None) or init_container()
    settings = container.settings()
    configure_logging(settings.log_level)
    settings.require_provider_credentials()
    init_db(container.engine())
    fastapi_app.state.container = container

    yield

    try:
        await container.registry().close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing providers: %s", exc)


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title="Price Tracker",
        description="Asset price refresh and alert evaluation jobs",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.include_router(jobs_router)
    fastapi_app.include_router(providers_router)
    fastapi_app.include_router(quotes_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Installed as the `price-tracker-api` script."""
    uvicorn.run("price_tracker.main:app", host="127.0.0.1", port=8001)
