"""Correlation ID middleware for request tracing.

The id comes from the X-Correlation-ID header, else from the API Gateway
request id that Mangum exposes in the ASGI scope, else a fresh UUID. It is
echoed on the response and visible to every log line of the request.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from precheckin.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


def gateway_request_id(request: Request) -> str | None:
    """API Gateway request id of a Lambda invocation, if any."""
    event = request.scope.get("aws.event") or {}
    context = event.get("requestContext") or {}
    return context.get("requestId")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation id."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER) or gateway_request_id(request)
        )
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
