"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter

from precheckin import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health() -> dict[str, Any]:
    """Liveness probe for load balancers and uptime monitors."""
    return {"status": "healthy", "version": __version__}
