"""API router package."""
from analytics_api.api.date_range import router as date_range_router
from analytics_api.api.export import router as export_router

__all__ = [
    "date_range_router",
    "export_router",
]
