"""Notification dispatcher: exports as email attachments via Resend."""

from dataclasses import dataclass
from typing import Any, Sequence

from ..models import (
    CheckinError,
    ExportDocument,
    GuestRecord,
    TripMetadata,
    error_code_for_upstream_status,
)
from ..utils.logging import get_logger, log_dispatch
from .resend_client import EmailDeliveryError, ResendClient
from .summary import build_summary, readable_date

logger = get_logger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a successful send."""

    message_id: str | None
    response: dict[str, Any]


def build_subject(trip: TripMetadata) -> str:
    return f"Alloggiati Web – {trip.apartment or '-'} – Arrivo {readable_date(trip.arrival_date)}"


class NotificationDispatcher:
    """Builds the outbound email and sends it with a single API call."""

    def __init__(self, client: ResendClient, *, sender: str, recipient: str) -> None:
        """Initialize the dispatcher.

        Args:
            client: Email API client
            sender: Fixed "from" address
            recipient: Fixed "to" address
        """
        self._client = client
        self._sender = sender
        self._recipient = recipient

    def build_message(
        self,
        trip: TripMetadata,
        guests: Sequence[GuestRecord],
        documents: Sequence[ExportDocument],
    ) -> dict[str, Any]:
        """Assemble the email API payload.

        The guest email, when given, becomes the reply-to address.
        """
        message: dict[str, Any] = {
            "from": self._sender,
            "to": [self._recipient],
            "subject": build_subject(trip),
            "text": build_summary(trip, guests),
            "attachments": [document.to_attachment() for document in documents],
        }
        if trip.guest_email:
            message["reply_to"] = trip.guest_email
        return message

    def dispatch(
        self,
        trip: TripMetadata,
        guests: Sequence[GuestRecord],
        documents: Sequence[ExportDocument],
    ) -> DispatchResult:
        """Send the exports. No retry is attempted.

        Raises:
            CheckinError: With EMAIL_RATE_LIMITED, EMAIL_AUTH_FAILED or
                EMAIL_DELIVERY_FAILED depending on the upstream status.
        """
        message = self.build_message(trip, guests, documents)
        filenames = [document.filename for document in documents]

        try:
            response = self._client.send_email(message)
        except EmailDeliveryError as e:
            log_dispatch(
                logger,
                "failed",
                apartment=trip.apartment,
                attachments=filenames,
                status_code=e.status_code,
                error=f"{e} {e.details!r}" if e.details is not None else str(e),
            )
            raise CheckinError(error_code_for_upstream_status(e.status_code)) from e

        message_id = response.get("id")
        log_dispatch(
            logger,
            "sent",
            apartment=trip.apartment,
            attachments=filenames,
            message_id=message_id,
        )
        return DispatchResult(message_id=message_id, response=response)
