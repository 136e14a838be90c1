"""Guest and trip models for check-in submissions.

The front end posts Italian camelCase keys (cognome, dataNascita, ...). Guest
fields are all optional and arrive loosely typed, so every value is passed
through clean_or_empty before it reaches the formatter.
"""

import datetime as dt
import re
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..utils.normalize import clean_or_empty
from .enums import GuestRole

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_MAX_GUESTS = 5

ROLE_CODES = tuple(role.value for role in GuestRole)


def parse_iso_date(value: str) -> dt.date:
    """Parse a strict YYYY-MM-DD date.

    Raises:
        ValueError: If the string is not a real calendar date in that format.
    """
    if not ISO_DATE_PATTERN.match(value):
        raise ValueError("date must use the YYYY-MM-DD format")
    return dt.date.fromisoformat(value)


class GuestRecord(BaseModel):
    """One guest as submitted by the check-in form."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role_code: str = Field(default="", alias="tipoAlloggiato")
    surname: str = Field(default="", alias="cognome")
    name: str = Field(default="", alias="nome")
    sex: str = Field(default="", alias="sesso")
    birth_date: str = Field(default="", alias="dataNascita")
    birth_municipality: str = Field(default="", alias="comuneNascita")
    birth_province: str = Field(default="", alias="provinciaNascita")
    birth_state: str = Field(default="", alias="statoNascita")
    citizenship: str = Field(default="", alias="cittadinanza")
    document_type: str = Field(default="", alias="tipoDocumento")
    document_number: str = Field(default="", alias="numeroDocumento")
    issue_place: str = Field(default="", alias="luogoRilascio")
    days: str = Field(default="", alias="giorni")

    # Display names, used only in the email summary
    birth_municipality_label: str = Field(default="", alias="comuneNascitaNome")
    birth_state_label: str = Field(default="", alias="statoNascitaNome")
    citizenship_label: str = Field(default="", alias="cittadinanzaNome")
    issue_place_label: str = Field(default="", alias="luogoRilascioNome")

    @field_validator("*", mode="before")
    @classmethod
    def _clean(cls, value: Any) -> str:
        return clean_or_empty(value)

    @field_validator("role_code")
    @classmethod
    def _check_role_code(cls, value: str) -> str:
        if value and value not in ROLE_CODES:
            raise ValueError(f"tipoAlloggiato must be one of {', '.join(ROLE_CODES)}")
        return value


class TripMetadata(BaseModel):
    """Stay-level data shared by every guest in a submission."""

    model_config = ConfigDict(strict=True)

    apartment: str = ""
    arrival_date: str
    departure_date: str = ""
    nights: int | None = None
    guest_email: str | None = None


class CheckinSubmission(BaseModel):
    """Inbound body of POST /api/send-alloggiati-txt.

    The maximum number of guests can be overridden per call by validating
    with ``context={"max_guests": n}``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    apartment: str = Field(default="", alias="appartamento")
    arrival_date: str = Field(..., alias="dataArrivo")
    departure_date: str = Field(default="", alias="dataPartenza")
    nights: int | None = Field(default=None, ge=0, alias="numeroNotti")
    guest_email: EmailStr | None = Field(default=None, alias="emailOspite")
    honeypot: str = ""
    guests: list[GuestRecord] = Field(..., min_length=1)

    @field_validator("apartment", "honeypot", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str:
        return clean_or_empty(value)

    @field_validator("arrival_date", mode="before")
    @classmethod
    def _require_arrival(cls, value: Any) -> str:
        text = clean_or_empty(value)
        parse_iso_date(text)
        return text

    @field_validator("departure_date", mode="before")
    @classmethod
    def _optional_departure(cls, value: Any) -> str:
        text = clean_or_empty(value)
        if text:
            parse_iso_date(text)
        return text

    @field_validator("nights", "guest_email", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if value is None or clean_or_empty(value) == "":
            return None
        return value

    @field_validator("guests")
    @classmethod
    def _check_guest_count(
        cls, value: list[GuestRecord], info: ValidationInfo
    ) -> list[GuestRecord]:
        context = info.context or {}
        max_guests = context.get("max_guests", DEFAULT_MAX_GUESTS)
        if len(value) > max_guests:
            raise ValueError(f"at most {max_guests} guests per submission")
        return value

    @model_validator(mode="after")
    def _check_departure(self) -> "CheckinSubmission":
        if self.departure_date and self.departure_date < self.arrival_date:
            raise ValueError("dataPartenza must not be before dataArrivo")
        return self

    @property
    def resolved_nights(self) -> int | None:
        """Number of nights, derived from the dates when not submitted."""
        if self.nights is not None:
            return self.nights
        if self.departure_date:
            return (
                parse_iso_date(self.departure_date) - parse_iso_date(self.arrival_date)
            ).days
        return None

    def to_trip(self) -> TripMetadata:
        """Extract the stay-level metadata."""
        return TripMetadata(
            apartment=self.apartment,
            arrival_date=self.arrival_date,
            departure_date=self.departure_date,
            nights=self.resolved_nights,
            guest_email=self.guest_email,
        )
