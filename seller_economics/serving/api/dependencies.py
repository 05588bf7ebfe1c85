"""
API Dependencies

Process-wide engine and fact source shared by the REST and GraphQL surfaces.
Both are plain FastAPI dependencies, so tests swap them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from seller_economics.engine import EconomicsEngine
from seller_economics.ingestion import DataLakeFactSource, FactSource


@lru_cache
def get_engine() -> EconomicsEngine:
    """
    FastAPI dependency for the economics engine.

    Example:
        @router.post("/economics")
        def economics(engine: EconomicsEngine = Depends(get_engine)):
            ...
    """
    return EconomicsEngine()


@lru_cache
def get_fact_source() -> FactSource:
    """FastAPI dependency for the configured data-lake fact source"""
    return DataLakeFactSource()
