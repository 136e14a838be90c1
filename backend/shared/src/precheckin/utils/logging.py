"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for submission and email dispatch logging

Guest personal data (names, documents, birth data) is never passed to these
helpers; only counts, apartment names and codes are logged.

Usage:
    from precheckin.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    log_submission(logger, "accepted", client_key="1.2.3.4", guest_count=2)
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def _join(prefix: str, context: dict[str, Any], skip: str) -> str:
    parts = [prefix]
    for key, value in context.items():
        if key != skip:
            parts.append(f"{key}={value}")
    return " | ".join(parts)


def log_submission(
    logger: logging.Logger,
    outcome: str,
    *,
    client_key: str | None = None,
    apartment: str | None = None,
    guest_count: int | None = None,
    remaining: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an admission decision for a check-in submission.

    Args:
        logger: Logger instance
        outcome: accepted, rate_limited, honeypot, rejected or error
        client_key: Rate-limit key of the caller
        apartment: Apartment named in the submission
        guest_count: Number of guests submitted
        remaining: Remaining submissions in the current window
        error: Error description if the submission failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"outcome": outcome}

    if client_key:
        context["client_key"] = client_key
    if apartment:
        context["apartment"] = apartment
    if guest_count is not None:
        context["guest_count"] = guest_count
    if remaining is not None:
        context["remaining"] = remaining
    if error:
        context["error"] = error

    context.update(extra)
    message = _join(f"Check-in submission: {outcome}", context, skip="outcome")

    if outcome == "error":
        logger.error(message, extra=context)
    elif outcome in ("rate_limited", "honeypot", "rejected"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_dispatch(
    logger: logging.Logger,
    result: str,
    *,
    apartment: str | None = None,
    attachments: list[str] | None = None,
    message_id: str | None = None,
    status_code: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an outbound email dispatch.

    Args:
        logger: Logger instance
        result: sent or failed
        apartment: Apartment the export belongs to
        attachments: Attached filenames
        message_id: Email API message id on success
        status_code: Upstream HTTP status on failure
        error: Upstream error detail (server-side only)
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"result": result}

    if apartment:
        context["apartment"] = apartment
    if attachments:
        context["attachments"] = ",".join(attachments)
    if message_id:
        context["message_id"] = message_id
    if status_code is not None:
        context["status_code"] = status_code
    if error:
        context["error"] = error

    context.update(extra)
    message = _join(f"Email dispatch: {result}", context, skip="result")

    if result == "failed":
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)
