"""API Routes Package"""
from .health import router as health_router
from .roadmap import router as roadmap_router

__all__ = ["health_router", "roadmap_router"]
