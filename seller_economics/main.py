"""
FastAPI Production Application

Main entry point for the Seller Economics API.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from seller_economics.config import get_settings
from seller_economics.config.logging import configure_logging
from seller_economics.serving.api import create_api_app
from seller_economics.serving.api.dependencies import get_engine, get_fact_source

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info(
        "Starting Seller Economics API",
        environment=settings.app_env,
        version=settings.version,
    )

    engine = get_engine()
    source = get_fact_source()
    logger.info(
        "Engine ready",
        worker_count=engine.settings.worker_count,
        facts_path=str(getattr(source, "facts_path", "")),
    )

    yield

    logger.info("Shutting down...")


app = create_api_app(lifespan=lifespan)


def run() -> None:
    """Console entry point"""
    import uvicorn

    uvicorn.run(
        "seller_economics.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    run()
