# Offer routers (authenticated per route)
from .routes.offers import offer_routers

# Health routers
from .routes.health import health_router

__all__ = ["offer_routers", "health_router"]
