"""Models package for the shortlinks service."""

from .url import ClickRecord, ErrorResponse, Location, ShortUrlCreate, UrlRecord

__all__ = ["ClickRecord", "ErrorResponse", "Location", "ShortUrlCreate", "UrlRecord"]
