"""Enumeration types for check-in records and exports."""

from enum import Enum

ITALY_CODE = "100000100"


class GuestRole(str, Enum):
    """Alloggiati Web "tipo alloggiato" codes."""

    SINGLE_GUEST = "16"
    HEAD_OF_FAMILY = "17"
    HEAD_OF_GROUP = "18"
    FAMILY_MEMBER = "19"
    GROUP_MEMBER = "20"


ROLE_LABELS: dict[str, str] = {
    GuestRole.SINGLE_GUEST.value: "Ospite singolo",
    GuestRole.HEAD_OF_FAMILY.value: "Capofamiglia",
    GuestRole.HEAD_OF_GROUP.value: "Capogruppo",
    GuestRole.FAMILY_MEMBER.value: "Familiare",
    GuestRole.GROUP_MEMBER.value: "Membro gruppo",
}


class DateStyle(str, Enum):
    """Date rendering used by an export."""

    LONG = "long"  # dd/mm/yyyy
    SHORT = "short"  # ddmmyy


class SexEncoding(str, Enum):
    """How the sex code is written in an export."""

    RAW = "raw"  # 1 / 2
    LETTER = "letter"  # M / F
