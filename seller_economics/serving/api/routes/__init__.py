"""
API Routes Module
"""
from .economics import router as economics_router
from .health import router as health_router

__all__ = [
    "economics_router",
    "health_router",
]
