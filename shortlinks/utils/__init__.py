"""Utils package for the shortlinks service."""

from .shortener import (
    generate_short_code,
    validate_short_code,
    create_short_url,
    to_iso,
    utc_now,
)

__all__ = [
    "generate_short_code",
    "validate_short_code",
    "create_short_url",
    "to_iso",
    "utc_now",
]
