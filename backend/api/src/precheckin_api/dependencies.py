"""FastAPI dependency injection providers for shared services.

Service instances are built lazily from Settings and cached with @lru_cache
so that they live for the whole process (one Lambda container or one
uvicorn worker). The rate-limit store in particular must be shared by every
request for the counters to mean anything.

Service Dependency Graph:
    Settings (get_settings)
        ├── RateLimitStore (memory or DynamoDB)
        └── CheckinService
                └── NotificationDispatcher
                        └── ResendClient (needs RESEND_API_KEY)

The check-in service is handed to routes as a provider callable rather than
an instance: a missing API key must only be reported after the rate limit
and honeypot checks.

Testing:
    Use reset_services() to clear cached instances between tests, or
    app.dependency_overrides to swap providers.
"""

from functools import lru_cache
from typing import Callable

from precheckin.config import get_settings, reset_settings
from precheckin.models import CheckinError, ErrorCode, alloggiati_variant
from precheckin.services.checkin import CheckinService
from precheckin.services.dispatcher import NotificationDispatcher
from precheckin.services.rate_limiter import (
    DynamoDBRateLimitStore,
    InMemoryRateLimitStore,
    RateLimitStore,
)
from precheckin.services.resend_client import ResendClient

CheckinServiceProvider = Callable[[], CheckinService]


@lru_cache
def get_rate_limit_store() -> RateLimitStore:
    """Get the process-wide rate-limit store.

    Returns:
        DynamoDBRateLimitStore when RATE_LIMIT_BACKEND=dynamodb, otherwise
        an InMemoryRateLimitStore.
    """
    settings = get_settings()
    if settings.rate_limit_backend == "dynamodb":
        return DynamoDBRateLimitStore(
            table_name=settings.rate_limit_table,
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return InMemoryRateLimitStore(
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
    )


@lru_cache
def get_checkin_service() -> CheckinService:
    """Get cached CheckinService instance.

    Raises:
        CheckinError: MISSING_API_KEY when RESEND_API_KEY is not set.
    """
    settings = get_settings()
    if not settings.resend_api_key:
        raise CheckinError(ErrorCode.MISSING_API_KEY)

    client = ResendClient(
        settings.resend_api_key,
        api_url=settings.resend_api_url,
        timeout=settings.http_timeout_seconds,
    )
    dispatcher = NotificationDispatcher(
        client,
        sender=settings.email_from,
        recipient=settings.email_to,
    )
    return CheckinService(
        dispatcher,
        alloggiati_variant=alloggiati_variant(settings.alloggiati_date_style),
        gies_enabled=settings.gies_enabled,
        gies_version=settings.gies_version,
        structure_codes=settings.structure_codes,
        default_structure_code=settings.default_structure_code,
    )


def get_checkin_service_provider() -> CheckinServiceProvider:
    """Dependency returning the callable that builds the check-in service."""
    return get_checkin_service


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_rate_limit_store.cache_clear()
    get_checkin_service.cache_clear()
    reset_settings()
