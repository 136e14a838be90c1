"""Backend services for the pre check-in exports."""

from .checkin import CheckinService
from .dispatcher import DispatchResult, NotificationDispatcher
from .rate_limiter import (
    DynamoDBRateLimitStore,
    InMemoryRateLimitStore,
    RateLimitResult,
    RateLimitStore,
    RateLimitStoreError,
)
from .resend_client import EmailDeliveryError, ResendClient

__all__ = [
    "CheckinService",
    "DispatchResult",
    "NotificationDispatcher",
    "DynamoDBRateLimitStore",
    "InMemoryRateLimitStore",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimitStoreError",
    "EmailDeliveryError",
    "ResendClient",
]
