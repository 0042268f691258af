"""Response schemas for the shortlinks service.

Fields are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..models.url import UrlRecord
from ..utils.shortener import to_iso


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortUrlCreateResponse(CamelModel):
    """Response model for a created short URL."""

    shortcode: str
    short_url: str
    original_url: str
    expires_at: str
    created_at: str

    @classmethod
    def from_record(cls, record: UrlRecord, short_url: str) -> "ShortUrlCreateResponse":
        return cls(
            shortcode=record.shortcode,
            short_url=short_url,
            original_url=record.original_url,
            expires_at=to_iso(record.expires_at),
            created_at=to_iso(record.created_at),
        )


class ClickStat(CamelModel):
    """One click as shown in URL statistics."""

    timestamp: str
    referrer: str
    location: str


class UrlStatsResponse(CamelModel):
    """Response model for URL statistics."""

    shortcode: str
    original_url: str
    created_at: str
    expires_at: str
    total_clicks: int
    clicks: list[ClickStat]

    @classmethod
    def from_record(cls, record: UrlRecord) -> "UrlStatsResponse":
        return cls(
            shortcode=record.shortcode,
            original_url=record.original_url,
            created_at=to_iso(record.created_at),
            expires_at=to_iso(record.expires_at),
            total_clicks=len(record.clicks),
            clicks=[
                ClickStat(
                    timestamp=to_iso(click.timestamp),
                    referrer=click.referrer or "Direct",
                    location=click.location.display(),
                )
                for click in record.clicks
            ],
        )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
