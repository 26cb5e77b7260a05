"""API routes package."""

from app.routes.contracts import router as contracts_router
from app.routes.documents import router as documents_router
from app.routes.health import router as health_router

__all__ = ["contracts_router", "documents_router", "health_router"]
