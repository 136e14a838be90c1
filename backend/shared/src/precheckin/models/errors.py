"""Standard error codes for the pre check-in service.

Every failure a caller can see maps to one ErrorCode. Services raise
CheckinError; the API layer converts it to an HTTP response with a status
code looked up from the code.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes returned in error responses."""

    # Client input errors
    METHOD_NOT_ALLOWED = "ERR_METHOD"
    VALIDATION_FAILED = "ERR_VALIDATION"
    NOT_FOUND = "ERR_NOT_FOUND"

    # Abuse protection
    RATE_LIMITED = "ERR_RATE_LIMIT"

    # Configuration
    MISSING_API_KEY = "ERR_CONFIG_001"

    # Upstream email delivery
    EMAIL_RATE_LIMITED = "ERR_EMAIL_001"
    EMAIL_AUTH_FAILED = "ERR_EMAIL_002"
    EMAIL_DELIVERY_FAILED = "ERR_EMAIL_003"

    # Anything else
    INTERNAL = "ERR_INTERNAL"


# Short machine-oriented labels for the "error" field
ERROR_LABELS: dict[ErrorCode, str] = {
    ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed",
    ErrorCode.VALIDATION_FAILED: "Missing required fields",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.RATE_LIMITED: "Too many requests",
    ErrorCode.MISSING_API_KEY: "Missing RESEND_API_KEY",
    ErrorCode.EMAIL_RATE_LIMITED: "Resend API error",
    ErrorCode.EMAIL_AUTH_FAILED: "Resend API error",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Resend API error",
    ErrorCode.INTERNAL: "Server error",
}

# Human-readable messages shown to the guest filling in the form
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.METHOD_NOT_ALLOWED: "Metodo non consentito.",
    ErrorCode.VALIDATION_FAILED: "Dati mancanti o non validi. Controlla il modulo e riprova.",
    ErrorCode.NOT_FOUND: "Risorsa non trovata.",
    ErrorCode.RATE_LIMITED: "Troppe richieste. Riprova più tardi.",
    ErrorCode.MISSING_API_KEY: "Servizio non configurato. Contatta l'amministratore.",
    ErrorCode.EMAIL_RATE_LIMITED: "Servizio email momentaneamente occupato. Riprova più tardi.",
    ErrorCode.EMAIL_AUTH_FAILED: "Errore di configurazione dell'invio email. Contatta l'amministratore.",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Invio email non riuscito. Riprova o contatta la struttura.",
    ErrorCode.INTERNAL: "Si è verificato un errore imprevisto. Riprova più tardi.",
}


class ErrorResponse(BaseModel):
    """Standard JSON body for every error response."""

    model_config = ConfigDict(strict=True)

    status: str = "error"
    error_code: ErrorCode
    error: str
    message: str
    details: Optional[Any] = None

    @classmethod
    def from_code(cls, code: ErrorCode, details: Optional[Any] = None) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the label and message for the code.
        """
        return cls(
            error_code=code,
            error=ERROR_LABELS[code],
            message=ERROR_MESSAGES[code],
            details=details,
        )


class CheckinError(Exception):
    """Exception raised by check-in operations.

    Caught by the API exception handler and converted to an ErrorResponse.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.error = ERROR_LABELS[code]
        self.message = ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse body."""
        return ErrorResponse.from_code(self.code, self.details)


def error_code_for_upstream_status(status_code: Optional[int]) -> ErrorCode:
    """Pick the error code for a failed email API call.

    Args:
        status_code: HTTP status returned by the email API, or None when the
            request never got a response.

    Returns:
        EMAIL_RATE_LIMITED for 429, EMAIL_AUTH_FAILED for 401/403,
        EMAIL_DELIVERY_FAILED otherwise.
    """
    if status_code == 429:
        return ErrorCode.EMAIL_RATE_LIMITED
    if status_code in (401, 403):
        return ErrorCode.EMAIL_AUTH_FAILED
    return ErrorCode.EMAIL_DELIVERY_FAILED
