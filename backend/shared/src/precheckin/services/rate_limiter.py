"""Per-client submission counters for the admission guard.

Each store implements ``increment(key) -> RateLimitResult``. A key's window
opens on its first hit; hits beyond ``max_requests`` inside the window are
rejected with zero remaining, and the counter starts over once the window
has elapsed.

InMemoryRateLimitStore keeps counters in process memory (one Lambda
container or one uvicorn worker). DynamoDBRateLimitStore shares them across
instances through a single table keyed by ``client_key``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimitStoreError(Exception):
    """Raised when the counter backend cannot be read or updated."""

    pass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request."""

    allowed: bool
    remaining: int


class RateLimitStore(Protocol):
    """Counter backend used by the admission guard."""

    max_requests: int

    def increment(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is allowed."""
        ...


def client_key_from_headers(forwarded_for: str | None, peer: str | None = None) -> str:
    """Pick the rate-limit key for a request.

    Uses the first address of X-Forwarded-For, then the socket peer, then
    the shared "unknown" bucket.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer or UNKNOWN_CLIENT


@dataclass
class _Window:
    count: int
    started_at: float


class InMemoryRateLimitStore:
    """Fixed-window counters held in a dict.

    Expired windows are swept at most once per window length, so the dict
    only holds keys seen during roughly the last two windows. Reads and
    writes are not synchronized; concurrent requests from one client may be
    undercounted.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the store.

        Args:
            max_requests: Accepted requests per key per window
            window_seconds: Window length in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding a window."""
        return len(self._windows)

    def _expired(self, window: _Window, now: float) -> bool:
        return now - window.started_at > self.window_seconds

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep <= self.window_seconds:
            return
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if not self._expired(window, now)
        }
        self._last_sweep = now

    def increment(self, key: str) -> RateLimitResult:
        now = self._clock()
        self._sweep(now)
        window = self._windows.get(key)

        if window is None or self._expired(window, now):
            self._windows[key] = _Window(count=1, started_at=now)
            return RateLimitResult(allowed=True, remaining=self.max_requests - 1)

        window.count += 1
        if window.count > self.max_requests:
            return RateLimitResult(allowed=False, remaining=0)
        return RateLimitResult(allowed=True, remaining=self.max_requests - window.count)

    def reset(self) -> None:
        """Forget every counter."""
        self._windows.clear()


class DynamoDBRateLimitStore:
    """Fixed-window counters shared through a DynamoDB table.

    Table schema: partition key ``client_key`` (S). Items carry
    ``request_count``, ``window_start`` (epoch seconds) and ``expires_at``
    for DynamoDB TTL cleanup.
    """

    def __init__(
        self,
        table_name: str,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        dynamodb: Any = None,
    ) -> None:
        """Initialize the store.

        Args:
            table_name: Name of the counters table
            max_requests: Accepted requests per key per window
            window_seconds: Window length in seconds
            clock: Wall-clock time source in epoch seconds
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._table = (dynamodb or boto3.resource("dynamodb")).Table(table_name)

    def increment(self, key: str) -> RateLimitResult:
        now = int(self._clock())
        try:
            response = self._table.update_item(
                Key={"client_key": key},
                UpdateExpression="ADD request_count :one",
                ConditionExpression="attribute_exists(client_key) AND window_start >= :cutoff",
                ExpressionAttributeValues={
                    ":one": 1,
                    ":cutoff": now - self.window_seconds,
                },
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code != "ConditionalCheckFailedException":
                raise RateLimitStoreError(f"Failed to update rate limit counter: {e}") from e
            return self._open_window(key, now)

        count = int(response["Attributes"]["request_count"])
        if count > self.max_requests:
            return RateLimitResult(allowed=False, remaining=0)
        return RateLimitResult(allowed=True, remaining=self.max_requests - count)

    def _open_window(self, key: str, now: int) -> RateLimitResult:
        try:
            self._table.put_item(
                Item={
                    "client_key": key,
                    "request_count": 1,
                    "window_start": now,
                    "expires_at": now + self.window_seconds,
                }
            )
        except ClientError as e:
            raise RateLimitStoreError(f"Failed to open rate limit window: {e}") from e
        logger.debug("Opened rate limit window for %s", key)
        return RateLimitResult(allowed=True, remaining=self.max_requests - 1)
