"""
FastAPI Application Factory

Creates and configures the main API application.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from seller_economics.config import get_settings
from seller_economics.domain.errors import QueryCancelled, QueryValidationError
from seller_economics.serving.api.graphql import create_graphql_router
from seller_economics.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from seller_economics.serving.api.routes import economics_router, health_router

logger = structlog.get_logger(__name__)


async def query_validation_handler(request: Request, exc: QueryValidationError) -> JSONResponse:
    logger.info("Economics query rejected", code=exc.code, message=exc.message)
    return JSONResponse(status_code=400, content={"error": exc.code, "message": exc.message})


async def query_cancelled_handler(request: Request, exc: QueryCancelled) -> JSONResponse:
    logger.warning("Economics query cancelled", message=exc.message)
    return JSONResponse(status_code=504, content={"error": exc.code, "message": exc.message})


def create_api_app(lifespan: Optional[Any] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Seller Economics API",
        description="Date- and product-bucketed seller economics",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_exception_handler(QueryValidationError, query_validation_handler)
    app.add_exception_handler(QueryCancelled, query_cancelled_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(economics_router, prefix="/api/v1/economics", tags=["Economics"])
    app.include_router(create_graphql_router(), prefix="/graphql", tags=["GraphQL"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
            "graphql": "/graphql",
        }

    return app
