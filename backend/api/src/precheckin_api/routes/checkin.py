"""Check-in submission endpoint.

POST /send-alloggiati-txt runs, in order:

1. Rate limit (per client address, X-RateLimit-* headers on every response)
2. Honeypot (filled in ⇒ 200 without doing anything)
3. Configuration check (RESEND_API_KEY ⇒ 500 when missing)
4. Body validation (⇒ 400 with per-field details)
5. Export formatting and email dispatch

The body is read and validated inside the handler rather than declared as a
model parameter, so that steps 1-3 happen before validation.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from precheckin.config import Settings, get_settings
from precheckin.models import CheckinError, CheckinSubmission, ErrorCode
from precheckin.services.rate_limiter import (
    RateLimitResult,
    RateLimitStore,
    RateLimitStoreError,
    client_key_from_headers,
)
from precheckin.utils.logging import get_logger, log_submission
from precheckin.utils.normalize import clean_or_empty
from precheckin_api.dependencies import (
    CheckinServiceProvider,
    get_checkin_service_provider,
    get_rate_limit_store,
)
from precheckin_api.models.common import SubmissionAccepted, format_validation_errors

logger = get_logger(__name__)

router = APIRouter(tags=["checkin"])

RATE_LIMIT_LIMIT_HEADER = "X-RateLimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"


def enforce_rate_limit(
    request: Request,
    store: RateLimitStore = Depends(get_rate_limit_store),
) -> RateLimitResult:
    """Count the request against the caller's window.

    Stores the client key and rate-limit headers on ``request.state`` so
    that both success and error responses can carry them.

    Raises:
        CheckinError: RATE_LIMITED when the window is exhausted.
    """
    client_key = client_key_from_headers(
        request.headers.get("x-forwarded-for"),
        request.client.host if request.client else None,
    )
    request.state.client_key = client_key

    try:
        result = store.increment(client_key)
    except RateLimitStoreError as e:
        # Counter outage must not block check-ins
        logger.error("Rate limit store unavailable, admitting request: %s", e)
        result = RateLimitResult(allowed=True, remaining=store.max_requests)

    request.state.rate_limit_headers = {
        RATE_LIMIT_LIMIT_HEADER: str(store.max_requests),
        RATE_LIMIT_REMAINING_HEADER: str(max(0, result.remaining)),
    }

    if not result.allowed:
        log_submission(logger, "rate_limited", client_key=client_key, remaining=0)
        raise CheckinError(ErrorCode.RATE_LIMITED)
    return result


async def _read_payload(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as e:
        raise CheckinError(
            ErrorCode.VALIDATION_FAILED,
            details=[{"loc": ["body"], "msg": "Body must be valid JSON", "type": "json_invalid"}],
        ) from e
    if not isinstance(payload, dict):
        raise CheckinError(
            ErrorCode.VALIDATION_FAILED,
            details=[{"loc": ["body"], "msg": "Body must be a JSON object", "type": "dict_type"}],
        )
    return payload


def honeypot_filled(value: Any) -> bool:
    """Whether the bot trap field carries a value.

    Strings count when they hold more than whitespace; any other JSON value
    counts when truthy, so false, 0 and null leave the trap untouched.
    """
    if isinstance(value, str):
        return bool(clean_or_empty(value))
    return bool(value)


def parse_submission(payload: dict[str, Any], max_guests: int) -> CheckinSubmission:
    """Validate a raw body into a CheckinSubmission.

    Raises:
        CheckinError: VALIDATION_FAILED with per-field details.
    """
    try:
        return CheckinSubmission.model_validate(payload, context={"max_guests": max_guests})
    except ValidationError as e:
        details = format_validation_errors(list(e.errors())).model_dump(mode="json")["details"]
        raise CheckinError(ErrorCode.VALIDATION_FAILED, details=details) from e


@router.post(
    "/send-alloggiati-txt",
    summary="Submit guest data for check-in",
    description="""
Format the submitted guests as Alloggiati Web and GIES exports and email
them to the property manager.

**Public endpoint** - protected by a per-client rate limit and a honeypot.

Body (JSON): `appartamento`, `dataArrivo` (YYYY-MM-DD, required),
`dataPartenza`, `numeroNotti`, `emailOspite`, `honeypot`, and `guests`
(1 to MAX_GUESTS records with `cognome`, `nome`, `sesso`, `dataNascita`,
`cittadinanza`, `tipoDocumento`, ...).
""",
    response_model=SubmissionAccepted,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Exports emailed (or honeypot triggered)"},
        400: {"description": "Missing or invalid fields"},
        405: {"description": "Only POST is allowed"},
        429: {"description": "Too many submissions from this client"},
        500: {"description": "Configuration or email delivery failure"},
    },
)
async def send_alloggiati_txt(
    request: Request,
    response: Response,
    rate_limit: RateLimitResult = Depends(enforce_rate_limit),
    settings: Settings = Depends(get_settings),
    service_provider: CheckinServiceProvider = Depends(get_checkin_service_provider),
) -> SubmissionAccepted:
    """Accept one check-in submission."""
    response.headers.update(request.state.rate_limit_headers)
    client_key = request.state.client_key

    payload = await _read_payload(request)

    if honeypot_filled(payload.get("honeypot")):
        log_submission(logger, "honeypot", client_key=client_key)
        return SubmissionAccepted()

    service = service_provider()

    try:
        submission = parse_submission(payload, settings.max_guests)
    except CheckinError as e:
        log_submission(logger, "rejected", client_key=client_key, error=e.error)
        raise

    result = await run_in_threadpool(service.submit, submission)

    log_submission(
        logger,
        "accepted",
        client_key=client_key,
        apartment=submission.apartment,
        guest_count=len(submission.guests),
        remaining=rate_limit.remaining,
    )
    return SubmissionAccepted(message="Email sent successfully", id=result.message_id)
