"""API routes package.

- health: Health check endpoint
- checkin: Guest data submission and export dispatch

All routers are registered in main.py with /api prefix.
"""

from precheckin_api.routes.checkin import router as checkin_router
from precheckin_api.routes.health import router as health_router

__all__ = [
    "checkin_router",
    "health_router",
]
