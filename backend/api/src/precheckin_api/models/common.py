"""Shared API request/response models.

Domain models (GuestRecord, CheckinSubmission, ...) live in precheckin.models;
this module only covers HTTP-layer concerns.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Re-export the standard error body for convenience
from precheckin.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "SubmissionAccepted",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "format_validation_errors",
]


class ValidationErrorDetail(BaseModel):
    """Detail of a single validation error."""

    model_config = ConfigDict(strict=True)

    loc: list[str] = Field(
        ...,
        description="Path to the field that failed validation",
        examples=[["guests", "0"]],
    )
    msg: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Field required"],
    )
    type: str = Field(
        ...,
        description="Error type identifier",
        examples=["missing"],
    )


class ValidationErrorResponse(BaseModel):
    """Collected validation errors of one request."""

    model_config = ConfigDict(strict=True)

    details: list[ValidationErrorDetail] = Field(default_factory=list)


class SubmissionAccepted(BaseModel):
    """Response for an accepted check-in submission."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "status": "ok",
                    "message": "Email sent successfully",
                    "id": "49a3999c-0ce1-4ea6-ab68-afcd6dc2e794",
                }
            ]
        },
    )

    status: str = "ok"
    message: str | None = Field(default=None, description="Human-readable outcome")
    id: str | None = Field(default=None, description="Email API message id")


def format_validation_errors(errors: list[dict[str, Any]]) -> ValidationErrorResponse:
    """Convert Pydantic validation errors to ValidationErrorResponse.

    Args:
        errors: List of error dicts from Pydantic's ValidationError.errors()

    Returns:
        ValidationErrorResponse ready for JSON serialization.
    """
    details = [
        ValidationErrorDetail(
            loc=[str(loc) for loc in error.get("loc", [])],
            msg=str(error.get("msg", "")),
            type=str(error.get("type", "")),
        )
        for error in errors
    ]
    return ValidationErrorResponse(details=details)
