"""Export document and variant models."""

import base64
from dataclasses import dataclass, field

from .enums import DateStyle, SexEncoding

CRLF = "\r\n"


@dataclass(frozen=True)
class ExportVariant:
    """Per-format switches for the record formatter."""

    name: str
    date_style: DateStyle
    sex_encoding: SexEncoding
    map_document_types: bool = True


ALLOGGIATI = ExportVariant(
    name="alloggiati",
    date_style=DateStyle.LONG,
    sex_encoding=SexEncoding.RAW,
)

ALLOGGIATI_LEGACY = ExportVariant(
    name="alloggiati-legacy",
    date_style=DateStyle.SHORT,
    sex_encoding=SexEncoding.RAW,
)

GIES = ExportVariant(
    name="gies",
    date_style=DateStyle.SHORT,
    sex_encoding=SexEncoding.LETTER,
)


def alloggiati_variant(date_style: DateStyle) -> ExportVariant:
    """Return the Alloggiati Web variant for the configured date style."""
    return ALLOGGIATI_LEGACY if date_style == DateStyle.SHORT else ALLOGGIATI


@dataclass
class ExportDocument:
    """A rendered export file, computed per request and never stored."""

    filename: str
    lines: list[str] = field(default_factory=list)
    media_type: str = "text/plain"
    separator: str = CRLF

    @property
    def text(self) -> str:
        """Lines joined with the separator, without a trailing one."""
        return self.separator.join(self.lines)

    def to_base64(self) -> str:
        """UTF-8 encode the text and return it base64-encoded."""
        return base64.b64encode(self.text.encode("utf-8")).decode("ascii")

    def to_attachment(self) -> dict[str, str]:
        """Attachment entry in the shape the email API expects."""
        return {
            "filename": self.filename,
            "content": self.to_base64(),
            "content_type": self.media_type,
        }
