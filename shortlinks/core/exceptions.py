"""Exceptions raised by the shortcode store.

The HTTP layer maps each of these to a status code in ``shortlinks.main``.
"""

from typing import Optional


class ShortlinkError(Exception):
    """Base class for shortcode store errors."""

    def __init__(self, message: str, shortcode: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.shortcode = shortcode


class InvalidShortcodeFormatError(ShortlinkError):
    """Raised when a requested shortcode contains disallowed characters."""

    pass


class InvalidValidityError(ShortlinkError):
    """Raised when a validity period is not a positive number of minutes."""

    pass


class ShortcodeAlreadyExistsError(ShortlinkError):
    """Raised when a requested shortcode is held by a live record."""

    pass


class ShortcodeNotFoundError(ShortlinkError):
    """Raised when a shortcode is absent or its record has expired."""

    pass


class ShortcodeGenerationError(ShortlinkError):
    """Raised when no free shortcode could be generated."""

    pass
