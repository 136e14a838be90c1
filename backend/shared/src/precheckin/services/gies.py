"""GIES interchange export (pipe-delimited records and XML).

A submission becomes one movement:

    HDR|version|structure|generated|apartment
    MOV|movement id|structure|arrival|departure|nights|guests
    ARR|guest id|movement id|role|arrival|stay|surname|name|sex|birth date|citizenship
    PAR|guest id|birth municipality|birth province|birth state|doc type|doc number|issue place
    PRE|movement id|structure|guests|nights|presences
    END|record count

ARR and PAR repeat once per guest (all ARR first, then all PAR). The XML
rendering is built with lxml and carries the same ARR/PAR/PRE data as
nested elements under <gies version=".."><movimento id=".." struttura="..">.
Characters XML 1.0 cannot represent are dropped from text and attributes.
"""

import datetime as dt
import re
import uuid
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from lxml import etree

from ..models import GIES, ExportDocument, GuestRecord, TripMetadata
from .formatter import (
    ResolvedGuest,
    export_document_type,
    format_date,
    map_sex,
    resolve_guests,
)

GIES_TXT_FILENAME = "gies.txt"
GIES_XML_FILENAME = "gies.xml"
DEFAULT_GIES_VERSION = "1.0"
DEFAULT_STRUCTURE_CODE = "000000"

RECORD_FIELD_COUNTS: dict[str, int] = {
    "HDR": 5,
    "MOV": 7,
    "ARR": 11,
    "PAR": 8,
    "PRE": 6,
    "END": 2,
}

# Anything outside the XML 1.0 Char production
_XML_ILLEGAL = re.compile(
    "[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


@dataclass(frozen=True)
class GiesIds:
    """Identifiers of one movement and its guests."""

    movement_id: str
    guest_ids: list[str]


IdFactory = Callable[[int], GiesIds]


def generate_ids(guest_count: int) -> GiesIds:
    """Generate collision-resistant movement and guest identifiers.

    The movement id is 12 hex characters of a random UUID; guest ids append
    a 2-digit position to it.
    """
    movement_id = uuid.uuid4().hex[:12].upper()
    guest_ids = [f"{movement_id}{position:02d}" for position in range(1, guest_count + 1)]
    return GiesIds(movement_id=movement_id, guest_ids=guest_ids)


def lookup_structure_code(
    apartment: str,
    table: Mapping[str, str],
    default: str = DEFAULT_STRUCTURE_CODE,
) -> str:
    """Map a free-text apartment name to its structure code.

    Matching ignores case and surrounding whitespace.
    """
    key = apartment.strip().casefold()
    for name, code in table.items():
        if name.strip().casefold() == key:
            return code
    return default


def xml_safe(value: str) -> str:
    """Drop characters that cannot appear in an XML 1.0 document."""
    return _XML_ILLEGAL.sub("", value)


def _field(value: object) -> str:
    text = "" if value is None else str(value)
    return text.replace("|", " ").replace("\r", " ").replace("\n", " ")


def build_record(kind: str, *values: object) -> str:
    """Build one pipe-delimited record.

    Raises:
        ValueError: If the number of fields does not match the record type.
    """
    fields = [kind, *(_field(value) for value in values)]
    expected = RECORD_FIELD_COUNTS[kind]
    if len(fields) != expected:
        raise ValueError(f"{kind} record needs {expected} fields, got {len(fields)}")
    return "|".join(fields)


def _stay_days(stay: str) -> int:
    return int(stay) if stay.isdigit() else 0


@dataclass(frozen=True)
class GiesMovement:
    """Everything needed to render a GIES movement in either format."""

    trip: TripMetadata
    guests: list[ResolvedGuest]
    ids: GiesIds
    structure_code: str
    generated_on: dt.date
    version: str = DEFAULT_GIES_VERSION

    @property
    def arrival(self) -> str:
        return format_date(self.trip.arrival_date, GIES.date_style)

    @property
    def departure(self) -> str:
        return format_date(self.trip.departure_date, GIES.date_style)

    @property
    def nights(self) -> str:
        return "" if self.trip.nights is None else str(self.trip.nights)

    @property
    def presences(self) -> int:
        """Guest-nights of the movement."""
        return sum(_stay_days(guest.stay) for guest in self.guests)

    def guest_values(self, guest: ResolvedGuest) -> dict[str, str]:
        """Variant-encoded values of one guest, keyed by XML element name."""
        return {
            "idOspite": self.ids.guest_ids[guest.index],
            "tipoAlloggiato": guest.role,
            "dataArrivo": self.arrival,
            "permanenza": guest.stay,
            "cognome": guest.surname,
            "nome": guest.name,
            "sesso": map_sex(guest.sex, GIES.sex_encoding),
            "dataNascita": format_date(guest.birth_date, GIES.date_style),
            "cittadinanza": guest.citizenship,
            "comuneNascita": guest.birth_municipality,
            "provinciaNascita": guest.birth_province,
            "statoNascita": guest.birth_state,
            "tipoDocumento": export_document_type(guest, GIES),
            "numeroDocumento": guest.document_number,
            "luogoRilascio": guest.issue_place,
        }


_ARR_KEYS = (
    "idOspite",
    "tipoAlloggiato",
    "dataArrivo",
    "permanenza",
    "cognome",
    "nome",
    "sesso",
    "dataNascita",
    "cittadinanza",
)
_PAR_KEYS = (
    "comuneNascita",
    "provinciaNascita",
    "statoNascita",
    "tipoDocumento",
    "numeroDocumento",
    "luogoRilascio",
)


def build_gies_records(movement: GiesMovement) -> list[str]:
    """Render a movement as ordered pipe-delimited records."""
    movement_id = movement.ids.movement_id
    records = [
        build_record(
            "HDR",
            movement.version,
            movement.structure_code,
            format_date(movement.generated_on.isoformat(), GIES.date_style),
            movement.trip.apartment,
        ),
        build_record(
            "MOV",
            movement_id,
            movement.structure_code,
            movement.arrival,
            movement.departure,
            movement.nights,
            len(movement.guests),
        ),
    ]

    guest_values = [movement.guest_values(guest) for guest in movement.guests]
    for values in guest_values:
        records.append(
            build_record(
                "ARR",
                values["idOspite"],
                movement_id,
                *(values[key] for key in _ARR_KEYS[1:]),
            )
        )
    for values in guest_values:
        records.append(
            build_record(
                "PAR",
                values["idOspite"],
                *(values[key] for key in _PAR_KEYS),
            )
        )

    records.append(
        build_record(
            "PRE",
            movement_id,
            movement.structure_code,
            len(movement.guests),
            movement.nights,
            movement.presences,
        )
    )
    # END counts every record including itself
    records.append(build_record("END", len(records) + 1))
    return records


def _text(value: object) -> str:
    return xml_safe("" if value is None else str(value))


def _child(parent: etree._Element, name: str, value: object) -> etree._Element:
    element = etree.SubElement(parent, name)
    element.text = _text(value)
    return element


def build_gies_tree(movement: GiesMovement) -> etree._Element:
    """Build the XML tree of a movement (ARR with nested PAR, then PRE)."""
    root = etree.Element("gies", version=_text(movement.version))
    movimento = etree.SubElement(
        root,
        "movimento",
        id=_text(movement.ids.movement_id),
        struttura=_text(movement.structure_code),
    )
    _child(movimento, "appartamento", movement.trip.apartment)
    _child(movimento, "dataArrivo", movement.arrival)
    _child(movimento, "dataPartenza", movement.departure)

    for guest in movement.guests:
        values = movement.guest_values(guest)
        arrival = etree.SubElement(movimento, "ARR")
        for key in _ARR_KEYS:
            _child(arrival, key, values[key])
        personal = etree.SubElement(arrival, "PAR")
        for key in _PAR_KEYS:
            _child(personal, key, values[key])

    presence = etree.SubElement(movimento, "PRE")
    _child(presence, "ospiti", len(movement.guests))
    _child(presence, "notti", movement.nights)
    _child(presence, "presenze", movement.presences)
    return root


def render_gies_xml(movement: GiesMovement) -> list[str]:
    """Serialize a movement as indented UTF-8 XML lines."""
    xml_bytes = etree.tostring(
        build_gies_tree(movement),
        pretty_print=True,
        xml_declaration=True,
        encoding="UTF-8",
    )
    return xml_bytes.decode("utf-8").splitlines()


def build_gies_documents(
    trip: TripMetadata,
    guests: Sequence[GuestRecord],
    *,
    structure_code: str = DEFAULT_STRUCTURE_CODE,
    id_factory: IdFactory = generate_ids,
    generated_on: dt.date | None = None,
    version: str = DEFAULT_GIES_VERSION,
) -> tuple[ExportDocument, ExportDocument]:
    """Build the GIES export in its delimited and XML renderings.

    Args:
        trip: Stay-level metadata
        guests: Guests in submission order
        structure_code: GIES code of the apartment
        id_factory: Source of movement/guest identifiers
        generated_on: Date written in the header (defaults to today)
        version: Format version written in the header

    Returns:
        Tuple of (pipe-delimited document, XML document).
    """
    resolved = resolve_guests(trip, guests)
    movement = GiesMovement(
        trip=trip,
        guests=resolved,
        ids=id_factory(len(resolved)),
        structure_code=structure_code,
        generated_on=generated_on or dt.date.today(),
        version=version,
    )

    txt = ExportDocument(filename=GIES_TXT_FILENAME, lines=build_gies_records(movement))
    xml = ExportDocument(
        filename=GIES_XML_FILENAME,
        lines=render_gies_xml(movement),
        media_type="application/xml",
        separator="\n",
    )
    return txt, xml
