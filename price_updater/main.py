"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Response
from prometheus_fastapi_instrumentator import Instrumentator

from price_updater.api.routes import prices, products, rules
from price_updater.config import settings
from price_updater.db.models import Base
from price_updater.db.session import engine
from price_updater.logging_config import setup_logging
from price_updater.storage.repository import rules_cache

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Dynamic Price Updater...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    logger.info("Shutting down...")
    await rules_cache.close()
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Dynamic Price Updater",
    description="Quantity-based product price quotes with bulk discount rules",
    version="1.0.0",
    lifespan=lifespan,
)

# Prometheus instrumentation
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health", "/favicon.ico"],
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

app.include_router(prices.router)
app.include_router(rules.router)
app.include_router(products.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon response to avoid 404 noise."""
    return Response(status_code=204)


if __name__ == "__main__":
    uvicorn.run(
        "price_updater.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
