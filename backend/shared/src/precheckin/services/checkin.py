"""Check-in pipeline: format the exports, then dispatch them."""

import datetime as dt
from typing import Callable, Mapping

from ..models import (
    ALLOGGIATI,
    CheckinSubmission,
    ExportDocument,
    ExportVariant,
)
from .dispatcher import DispatchResult, NotificationDispatcher
from .formatter import build_alloggiati_document
from .gies import (
    DEFAULT_GIES_VERSION,
    DEFAULT_STRUCTURE_CODE,
    IdFactory,
    build_gies_documents,
    generate_ids,
    lookup_structure_code,
)


class CheckinService:
    """Runs the record formatter and the notification dispatcher.

    Usage:
        service = CheckinService(dispatcher)
        result = service.submit(submission)
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        alloggiati_variant: ExportVariant = ALLOGGIATI,
        gies_enabled: bool = True,
        gies_version: str = DEFAULT_GIES_VERSION,
        structure_codes: Mapping[str, str] | None = None,
        default_structure_code: str = DEFAULT_STRUCTURE_CODE,
        id_factory: IdFactory = generate_ids,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.dispatcher = dispatcher
        self.alloggiati_variant = alloggiati_variant
        self.gies_enabled = gies_enabled
        self.gies_version = gies_version
        self.structure_codes = dict(structure_codes or {})
        self.default_structure_code = default_structure_code
        self._id_factory = id_factory
        self._today = today

    def build_documents(self, submission: CheckinSubmission) -> list[ExportDocument]:
        """Render every enabled export for a submission.

        Returns:
            The Alloggiati Web document, followed by the GIES text and XML
            documents when GIES is enabled.
        """
        trip = submission.to_trip()
        documents = [
            build_alloggiati_document(trip, submission.guests, self.alloggiati_variant)
        ]

        if self.gies_enabled:
            structure_code = lookup_structure_code(
                trip.apartment, self.structure_codes, self.default_structure_code
            )
            documents.extend(
                build_gies_documents(
                    trip,
                    submission.guests,
                    structure_code=structure_code,
                    id_factory=self._id_factory,
                    generated_on=self._today(),
                    version=self.gies_version,
                )
            )
        return documents

    def submit(self, submission: CheckinSubmission) -> DispatchResult:
        """Format the submission and email the exports.

        Raises:
            CheckinError: If the email could not be delivered.
        """
        documents = self.build_documents(submission)
        return self.dispatcher.dispatch(submission.to_trip(), submission.guests, documents)
