"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.pallets import router as pallets_router

__all__ = [
    "pallets_router",
]
