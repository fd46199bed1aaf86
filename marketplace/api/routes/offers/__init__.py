from .bulk import bulk_router
from .exports import export_router
from .views import views_router
from .offers import offers_router

# Fixed paths come before /offers/{offer_id}
offer_routers = [
    ("offer-bulk", bulk_router),
    ("offer-export", export_router),
    ("offer-views", views_router),
    ("offers", offers_router),
]

__all__ = ["offer_routers"]
