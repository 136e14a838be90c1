"""Human-readable email summary of a check-in submission."""

from typing import Sequence

from ..models import ROLE_LABELS, GuestRecord, TripMetadata
from .formatter import infer_role

DOCUMENT_LABELS: dict[str, str] = {
    "IDENT": "Carta d'identità",
    "PATEN": "Patente",
    "PASSP": "Passaporto",
    "PASOR": "Passaporto ordinario",
    "PASDI": "Passaporto diplomatico",
    "PASSE": "Passaporto servizio",
    "ID": "Carta d'identità",
    "PASS": "Passaporto",
    "DL": "Patente",
}

HEAVY_RULE = "═" * 64
LIGHT_RULE = "─" * 64


def readable_date(value: str) -> str:
    """``YYYY-MM-DD`` as ``dd/mm/yyyy``; other input is returned as is."""
    if not value:
        return "-"
    parts = value.split("-")
    if len(parts) != 3:
        return value
    year, month, day = parts
    return f"{day}/{month}/{year}"


def role_label(code: str) -> str:
    return ROLE_LABELS.get(code, code)


def sex_label(value: str) -> str:
    if value in ("1", "M"):
        return "Maschio"
    if value in ("2", "F"):
        return "Femmina"
    return value or "-"


def document_label(value: str) -> str:
    return DOCUMENT_LABELS.get(value.upper(), value or "-")


def _guest_block(guest: GuestRecord, index: int, group_size: int) -> str:
    birthplace = guest.birth_municipality_label or guest.birth_state_label or "-"
    rows = [
        ("Tipo", role_label(infer_role(guest.role_code, index, group_size))),
        ("Cognome", guest.surname.upper() or "-"),
        ("Nome", guest.name.upper() or "-"),
        ("Sesso", sex_label(guest.sex)),
        ("Data di nascita", readable_date(guest.birth_date)),
        ("Luogo di nascita", birthplace),
        ("Cittadinanza", guest.citizenship_label or "-"),
        ("", None),
        ("Documento", document_label(guest.document_type)),
        ("Numero", guest.document_number.upper() or "-"),
        ("Luogo rilascio", guest.issue_place_label or "-"),
    ]

    lines = [f"┌─ OSPITE {index + 1} {'─' * 45}", "│"]
    for label, value in rows:
        if value is None:
            lines.append("│")
        else:
            lines.append(f"│  {label + ':':<19}{value}")
    lines.extend(["│", f"└{'─' * 62}"])
    return "\n".join(lines)


def build_summary(trip: TripMetadata, guests: Sequence[GuestRecord]) -> str:
    """Plaintext body listing the stay and every guest field."""
    header = [
        HEAVY_RULE,
        "PRE CHECK-IN ALLOGGIATI WEB".center(64).rstrip(),
        HEAVY_RULE,
        "",
        f"{'APPARTAMENTO:':<18}{trip.apartment or '-'}",
        f"{'DATA ARRIVO:':<18}{readable_date(trip.arrival_date)}",
        f"{'DATA PARTENZA:':<18}{readable_date(trip.departure_date)}",
        f"{'NUMERO NOTTI:':<18}{trip.nights if trip.nights is not None else '-'}",
        f"{'EMAIL OSPITE:':<18}{trip.guest_email or '-'}",
        "",
        LIGHT_RULE,
        "ELENCO OSPITI".center(64).rstrip(),
        LIGHT_RULE,
    ]

    blocks = [_guest_block(guest, index, len(guests)) for index, guest in enumerate(guests)]

    footer = [
        HEAVY_RULE,
        "Il file TXT per Alloggiati Web è allegato a questa email.",
        HEAVY_RULE,
    ]
    return "\n".join(header) + "\n\n" + "\n\n".join(blocks) + "\n\n" + "\n".join(footer) + "\n"
