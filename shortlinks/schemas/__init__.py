"""Schemas package for the shortlinks service."""

from .url import (
    ShortUrlCreateResponse,
    UrlStatsResponse,
    ClickStat,
    HealthResponse,
)

__all__ = [
    "ShortUrlCreateResponse",
    "UrlStatsResponse",
    "ClickStat",
    "HealthResponse",
]
