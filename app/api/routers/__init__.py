"""
app/api/routers package marker.
"""

from app.api.routers.stock_import import router as stock_import_router

__all__ = [
    "stock_import_router",
]
