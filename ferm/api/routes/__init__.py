"""API routes module."""

from ferm.api.routes.garden import router as garden_router
from ferm.api.routes.health import router as health_router
from ferm.api.routes.inventory import router as inventory_router
from ferm.api.routes.notifications import router as notifications_router

__all__ = ["garden_router", "health_router", "inventory_router", "notifications_router"]
