"""Runtime configuration read from environment variables (and a local .env).

Settings are read once per process and cached; tests call reset_settings()
after changing the environment.
"""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models.enums import DateStyle

RESEND_API_URL = "https://api.resend.com/emails"


class Settings(BaseSettings):
    """Service configuration.

    Every field is read from the upper-case variable of the same name.
    STRUCTURE_CODES is a JSON object, CORS_ALLOW_ORIGINS a comma list.
    Empty variables keep the default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    resend_api_key: str | None = None
    resend_api_url: str = RESEND_API_URL
    email_from: str = "Pre Check-in <checkin@lovely-venice.it>"
    email_to: str = "appturistici.mestre@gmail.com"
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    rate_limit_max: int = Field(default=10, ge=1)
    rate_limit_window_seconds: int = Field(default=3600, ge=1)
    rate_limit_backend: str = Field(default="memory", pattern="^(memory|dynamodb)$")
    rate_limit_table: str = "precheckin-rate-limits"

    max_guests: int = Field(default=5, ge=1)
    alloggiati_date_style: DateStyle = DateStyle.LONG
    gies_enabled: bool = True
    gies_version: str = "1.0"
    structure_codes: dict[str, str] = Field(default_factory=dict)
    default_structure_code: str = "000000"

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide Settings instance."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (for testing only)."""
    get_settings.cache_clear()
