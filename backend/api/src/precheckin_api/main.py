"""FastAPI application for the pre check-in service.

Endpoints (all under /api):
- POST /send-alloggiati-txt: guest data → Alloggiati Web + GIES exports by email
- GET /health, GET /ping: liveness checks

Runs on AWS Lambda behind API Gateway through Mangum, or locally with uvicorn.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from precheckin import __version__
from precheckin.config import get_settings
from precheckin.utils.logging import configure_logging
from precheckin_api.exceptions import register_exception_handlers
from precheckin_api.middleware import CorrelationIdMiddleware
from precheckin_api.routes import checkin_router, health_router

configure_logging()

app = FastAPI(
    title="Pre Check-in API",
    description="Guest registration exports for Alloggiati Web and GIES",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-Correlation-ID"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(health_router, prefix="/api")
app.include_router(checkin_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "precheckin-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "precheckin_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
