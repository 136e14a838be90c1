"""Pydantic models for pre check-in submissions and exports."""

from .enums import (
    ITALY_CODE,
    ROLE_LABELS,
    DateStyle,
    GuestRole,
    SexEncoding,
)
from .errors import (
    CheckinError,
    ErrorCode,
    ErrorResponse,
    error_code_for_upstream_status,
)
from .export import (
    ALLOGGIATI,
    ALLOGGIATI_LEGACY,
    GIES,
    ExportDocument,
    ExportVariant,
    alloggiati_variant,
)
from .guest import CheckinSubmission, GuestRecord, TripMetadata, parse_iso_date

__all__ = [
    # Enums
    "ITALY_CODE",
    "ROLE_LABELS",
    "DateStyle",
    "GuestRole",
    "SexEncoding",
    # Errors
    "CheckinError",
    "ErrorCode",
    "ErrorResponse",
    "error_code_for_upstream_status",
    # Exports
    "ALLOGGIATI",
    "ALLOGGIATI_LEGACY",
    "GIES",
    "ExportDocument",
    "ExportVariant",
    "alloggiati_variant",
    # Guests
    "CheckinSubmission",
    "GuestRecord",
    "TripMetadata",
    "parse_iso_date",
]
