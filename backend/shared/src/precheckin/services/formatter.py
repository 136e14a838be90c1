"""Record formatter for the Alloggiati Web fixed-width export.

Turns loosely-typed guest records into strict positional lines. The same
field derivation (role inference, nationality rules, document fields only on
the first guest) also feeds the GIES export in ``services.gies``; what differs
between exports is captured by an ExportVariant (date style, sex encoding,
document type mapping).

Alloggiati Web line layout, in order:

    role(2) arrival(10|6) stay(2) surname(50) name(30) sex(1) birth date(10|6)
    birth municipality(9) birth province(2) birth state(9) citizenship(9)
    document type(5) document number(20) issue place(9)
"""

from dataclasses import dataclass
from typing import Any, Sequence

from ..models import (
    ALLOGGIATI,
    ITALY_CODE,
    DateStyle,
    ExportDocument,
    ExportVariant,
    GuestRecord,
    GuestRole,
    SexEncoding,
    TripMetadata,
)
from ..utils.normalize import clean_or_empty

ALLOGGIATI_FILENAME = "alloggiati.txt"

DATE_WIDTHS: dict[DateStyle, int] = {
    DateStyle.LONG: 10,
    DateStyle.SHORT: 6,
}

# Placeholder for missing or malformed dates
BLANK_DATES: dict[DateStyle, str] = {
    DateStyle.LONG: " " * 10,
    DateStyle.SHORT: "000000",
}

DOCUMENT_TYPE_CODES: dict[str, str] = {
    "ID": "IDENT",
    "CI": "IDENT",
    "CARTA": "IDENT",
    "PASS": "PASOR",
    "PASSP": "PASOR",
    "PASSPORT": "PASOR",
    "DL": "PATEN",
    "PATENTE": "PATEN",
}

_SEX_TO_RAW = {"1": "1", "2": "2", "M": "1", "F": "2"}
_SEX_TO_LETTER = {"1": "M", "2": "F", "M": "M", "F": "F"}


def pad_text(value: Any, width: int, *, upper: bool = False) -> str:
    """Truncate and right-pad a text field to exactly ``width`` characters."""
    text = clean_or_empty(value)
    if upper:
        text = text.upper()
    return text[:width].ljust(width, " ")


def pad_number(value: Any, width: int) -> str:
    """Left-pad a numeric field with zeros to exactly ``width`` characters.

    Empty values render as zeros. Values longer than ``width`` keep their
    leading characters.
    """
    text = clean_or_empty(value) or "0"
    return text.rjust(width, "0")[:width]


def format_date(value: Any, style: DateStyle) -> str:
    """Reformat an ISO ``YYYY-MM-DD`` date for an export.

    Args:
        value: ISO date string (anything else is treated as malformed)
        style: LONG for ``dd/mm/yyyy``, SHORT for ``ddmmyy``

    Returns:
        The reformatted date padded to the style width. Missing or malformed
        input yields the blank placeholder for the style instead of raising.
    """
    text = clean_or_empty(value)
    if not text:
        return BLANK_DATES[style]

    parts = text.split("-")
    if len(parts) != 3:
        return BLANK_DATES[style]

    year, month, day = parts
    if style == DateStyle.SHORT:
        formatted = f"{day}{month}{year[-2:]}"
    else:
        formatted = f"{day}/{month}/{year}"
    return pad_text(formatted, DATE_WIDTHS[style])


def map_sex(value: Any, encoding: SexEncoding) -> str:
    """Encode the sex code for an export.

    RAW keeps the Alloggiati ``1``/``2`` codes (``M``/``F`` are translated,
    anything else passes through). LETTER renders ``M``/``F`` and leaves
    unmapped values empty.
    """
    text = clean_or_empty(value).upper()
    if encoding == SexEncoding.LETTER:
        return _SEX_TO_LETTER.get(text, "")
    return _SEX_TO_RAW.get(text, text)


def map_document_type(value: Any) -> str:
    """Map a document type abbreviation to its 5-character export code.

    Unmapped values pass through unchanged apart from upper-casing.
    """
    text = clean_or_empty(value).upper()
    return DOCUMENT_TYPE_CODES.get(text, text)


def infer_role(explicit: str, index: int, group_size: int) -> str:
    """Work out the "tipo alloggiato" code for a guest.

    An explicit code wins, except that a first guest marked as single guest
    in a group of more than one becomes head of family. Without a code the
    first guest is single guest (alone) or head of family (group), and
    everyone else is a family member.
    """
    role = clean_or_empty(explicit)
    is_first = index == 0

    if role:
        if is_first and group_size > 1 and role == GuestRole.SINGLE_GUEST.value:
            return GuestRole.HEAD_OF_FAMILY.value
        return role

    if is_first:
        if group_size > 1:
            return GuestRole.HEAD_OF_FAMILY.value
        return GuestRole.SINGLE_GUEST.value
    return GuestRole.FAMILY_MEMBER.value


@dataclass(frozen=True)
class ResolvedGuest:
    """A guest after role, nationality and document rules were applied.

    Values are cleaned but not yet padded or variant-encoded.
    """

    index: int
    role: str
    stay: str
    surname: str
    name: str
    sex: str
    birth_date: str
    birth_municipality: str
    birth_province: str
    birth_state: str
    citizenship: str
    document_type: str
    document_number: str
    issue_place: str

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_italian(self) -> bool:
        return self.citizenship == ITALY_CODE


def resolve_stay(guest: GuestRecord, nights: int | None) -> str:
    """Stay length: the guest's own days, else the trip nights, else 1."""
    if guest.days:
        return guest.days
    if nights:
        return str(nights)
    return "1"


def resolve_guest(
    guest: GuestRecord,
    index: int,
    group_size: int,
    nights: int | None = None,
) -> ResolvedGuest:
    """Apply the field derivation rules to one guest.

    Args:
        guest: Submitted guest record
        index: Position of the guest in the submission (0 is the first guest)
        group_size: Number of guests in the submission
        nights: Trip night count, used when the guest has no own stay length

    Returns:
        ResolvedGuest ready to be rendered by any export.
    """
    citizenship = guest.citizenship or ITALY_CODE
    italian = citizenship == ITALY_CODE

    if italian:
        birth_municipality = guest.birth_municipality
        birth_province = guest.birth_province.upper()
        birth_state = guest.birth_state or ITALY_CODE
    else:
        birth_municipality = ""
        birth_province = ""
        birth_state = citizenship

    if index == 0:
        document_type = guest.document_type.upper()
        document_number = guest.document_number.upper()
        issue_place = guest.issue_place
        if not italian and not issue_place:
            issue_place = citizenship
    else:
        document_type = ""
        document_number = ""
        issue_place = ""

    return ResolvedGuest(
        index=index,
        role=infer_role(guest.role_code, index, group_size),
        stay=resolve_stay(guest, nights),
        surname=guest.surname.upper(),
        name=guest.name.upper(),
        sex=guest.sex,
        birth_date=guest.birth_date,
        birth_municipality=birth_municipality,
        birth_province=birth_province,
        birth_state=birth_state,
        citizenship=citizenship,
        document_type=document_type,
        document_number=document_number,
        issue_place=issue_place,
    )


def resolve_guests(trip: TripMetadata, guests: Sequence[GuestRecord]) -> list[ResolvedGuest]:
    """Resolve every guest of a submission, keeping submission order."""
    group_size = len(guests)
    return [
        resolve_guest(guest, index, group_size, trip.nights)
        for index, guest in enumerate(guests)
    ]


def export_document_type(guest: ResolvedGuest, variant: ExportVariant) -> str:
    """Document type as written by the given export variant."""
    if variant.map_document_types:
        return map_document_type(guest.document_type)
    return guest.document_type


def build_alloggiati_line(
    trip: TripMetadata,
    guest: ResolvedGuest,
    variant: ExportVariant = ALLOGGIATI,
) -> str:
    """Render one resolved guest as an Alloggiati Web fixed-width line."""
    sex = map_sex(guest.sex, variant.sex_encoding) or " "

    fields = [
        pad_text(guest.role, 2),
        format_date(trip.arrival_date, variant.date_style),
        pad_number(guest.stay, 2),
        pad_text(guest.surname, 50, upper=True),
        pad_text(guest.name, 30, upper=True),
        pad_text(sex, 1),
        format_date(guest.birth_date, variant.date_style),
        pad_text(guest.birth_municipality, 9),
        pad_text(guest.birth_province, 2, upper=True),
        pad_text(guest.birth_state, 9),
        pad_text(guest.citizenship, 9),
        pad_text(export_document_type(guest, variant), 5, upper=True),
        pad_text(guest.document_number, 20, upper=True),
        pad_text(guest.issue_place, 9),
    ]
    return "".join(fields)


def alloggiati_line_width(variant: ExportVariant = ALLOGGIATI) -> int:
    """Total width of an Alloggiati Web line for the variant."""
    return 148 + 2 * DATE_WIDTHS[variant.date_style]


def build_alloggiati_document(
    trip: TripMetadata,
    guests: Sequence[GuestRecord],
    variant: ExportVariant = ALLOGGIATI,
) -> ExportDocument:
    """Build the Alloggiati Web export, one line per guest joined with CRLF."""
    resolved = resolve_guests(trip, guests)
    return ExportDocument(
        filename=ALLOGGIATI_FILENAME,
        lines=[build_alloggiati_line(trip, guest, variant) for guest in resolved],
    )
