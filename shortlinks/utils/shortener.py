"""Shortcode utilities module.

This module handles the generation and validation of shortcodes and the
formatting helpers shared by the store and the API.
"""

import re
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

from ..core.config import settings


# Characters allowed in shortcodes (URL-safe)
ALPHABET = string.ascii_letters + string.digits + "_-"

SHORTCODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def generate_short_code(length: Optional[int] = None) -> str:
    """Generate a random URL-safe shortcode.

    Args:
        length: Length of the generated code. Defaults to settings value.

    Returns:
        Random shortcode string.
    """
    length = length or settings.short_code_length
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def validate_short_code(code: Optional[str]) -> bool:
    """Validate shortcode format.

    Args:
        code: Shortcode to validate.

    Returns:
        True if valid, False otherwise.
    """
    if not code:
        return False
    return SHORTCODE_PATTERN.match(code) is not None


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and ``Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_short_url(base_url: str, short_code: str) -> str:
    """Create full short URL from base URL and shortcode.

    Args:
        base_url: Base URL of the service.
        short_code: Shortcode.

    Returns:
        Full short URL string.
    """
    return f"{base_url.rstrip('/')}/{short_code}"
