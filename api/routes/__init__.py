"""
Route package initialization.
"""
from .vehicles import router as vehicles_router
from .crawler import router as crawler_router

__all__ = ["vehicles_router", "crawler_router"]
