"""Pydantic models for the shortlinks service."""

from datetime import datetime
from typing import Optional

from pydantic import (
    BaseModel,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
)

UNKNOWN = "Unknown"

_http_url = TypeAdapter(HttpUrl)


class Location(BaseModel):
    """Coarse geolocation of a click."""

    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN

    def display(self) -> str:
        """Render as ``"city, region, country"``."""
        return f"{self.city}, {self.region}, {self.country}"


class ClickRecord(BaseModel):
    """One successful redirect through a shortcode."""

    timestamp: datetime
    referrer: str = ""
    ip: str = ""
    user_agent: str = ""
    location: Location = Field(default_factory=Location)


class UrlRecord(BaseModel):
    """A stored shortcode and its click history."""

    shortcode: str
    original_url: str
    created_at: datetime
    expires_at: datetime
    clicks: list[ClickRecord] = Field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class ShortUrlCreate(BaseModel):
    """Model for creating a short URL."""

    url: str = Field(..., description="The original long URL to shorten")
    validity: Optional[int] = Field(
        None, gt=0, strict=True, description="Validity period in minutes"
    )
    shortcode: Optional[str] = Field(None, description="Custom shortcode")

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("URL is required")
        # Validated as an absolute http(s) URL but stored exactly as given
        try:
            _http_url.validate_python(value)
        except ValidationError:
            raise ValueError("Invalid URL format") from None
        return value


class ErrorResponse(BaseModel):
    """Model for error responses."""

    error: str
    message: str
