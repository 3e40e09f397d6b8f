"""API routers for the map viewer."""

from app.routers.layers import router as layers_router

__all__ = ["layers_router"]
