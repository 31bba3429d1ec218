"""API routers for the OMOP research export."""

from app.api.export import router as export_router

__all__ = [
    "export_router",
]
