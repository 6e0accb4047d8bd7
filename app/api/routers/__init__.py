"""
app/api/routers package marker.
"""

from app.api.routers.crawl import router as crawl_router

__all__ = [
    "crawl_router",
]
