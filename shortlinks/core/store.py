"""Shortcode store for the shortlinks service.

The store is the single source of truth for the shortcode -> record mapping.
Records live in memory, guarded by one lock, and are handed out only as deep
copies so callers can never mutate stored state.

Expired records are evicted lazily: the first lookup after expiry removes the
record and reports it as absent, which frees the shortcode for reuse.
``purge_expired`` evicts everything that has expired in one pass.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from ..models.url import ClickRecord, Location, UrlRecord
from ..utils.shortener import generate_short_code, utc_now, validate_short_code
from .exceptions import (
    InvalidShortcodeFormatError,
    InvalidValidityError,
    ShortcodeAlreadyExistsError,
    ShortcodeGenerationError,
    ShortcodeNotFoundError,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
# (stack, level, package, message)
LogEmitter = Callable[[str, str, str, str], None]

DEFAULT_VALIDITY_MINUTES = 24 * 60
DEFAULT_CODE_LENGTH = 8
DEFAULT_MAX_ATTEMPTS = 10

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class ShortcodeStore:
    """In-memory store of shortcodes, their expiry and click history."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        emit: Optional[LogEmitter] = None,
        code_length: int = DEFAULT_CODE_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        default_validity_minutes: int = DEFAULT_VALIDITY_MINUTES,
        stack: str = "backend",
        reserved: Iterable[str] = (),
    ):
        """Initialize the store.

        Args:
            clock: Returns the current time. Defaults to UTC wall clock.
            emit: Optional event emitter taking (stack, level, package, message).
                Failures inside it are swallowed.
            code_length: Length of generated shortcodes.
            max_attempts: Generation attempts before giving up on a free code.
            default_validity_minutes: Validity used when none is requested.
            stack: Stack name passed to the emitter.
            reserved: Shortcodes that may never be allocated, such as the
                first path segment of other routes.
        """
        self._clock = clock or utc_now
        self._emit = emit
        self._stack = stack
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.default_validity_minutes = default_validity_minutes
        self.reserved = frozenset(reserved)
        self._records: dict[str, UrlRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _log(self, level: str, message: str) -> None:
        logger.log(_LEVELS[level], message)
        if self._emit is None:
            return
        try:
            self._emit(self._stack, level, "service", message)
        except Exception as e:
            logger.debug(f"Event emitter failed: {e}")

    def _get_live(self, shortcode: str, now: datetime) -> Optional[UrlRecord]:
        """Return the live record for a shortcode, evicting it if expired.

        Must be called with the lock held.
        """
        record = self._records.get(shortcode)
        if record is None:
            return None
        if record.is_expired(now):
            del self._records[shortcode]
            self._log("warn", f"URL expired: {shortcode}")
            return None
        return record

    def allocate(
        self,
        url: str,
        validity_minutes: Optional[int] = None,
        shortcode: Optional[str] = None,
    ) -> UrlRecord:
        """Create a new record for a URL.

        Args:
            url: Original URL, already validated by the caller.
            validity_minutes: Minutes until expiry. Defaults to 24 hours.
            shortcode: Requested shortcode. Generated when None.

        Returns:
            Copy of the created record.

        Raises:
            InvalidValidityError: If validity is not a positive integer or
                pushes the expiry past the largest representable date.
            InvalidShortcodeFormatError: If the requested code has bad characters.
            ShortcodeAlreadyExistsError: If a live record holds the requested
                code or the code is reserved.
            ShortcodeGenerationError: If no free code was found.
        """
        if validity_minutes is None:
            validity_minutes = self.default_validity_minutes
        if (
            isinstance(validity_minutes, bool)
            or not isinstance(validity_minutes, int)
            or validity_minutes <= 0
        ):
            raise InvalidValidityError("Validity must be a positive integer")

        if shortcode is not None and not validate_short_code(shortcode):
            self._log("error", "Invalid shortcode format")
            raise InvalidShortcodeFormatError(
                "Invalid shortcode format", shortcode=shortcode
            )

        if shortcode is not None and shortcode in self.reserved:
            self._log("warn", f"Shortcode is reserved: {shortcode}")
            raise ShortcodeAlreadyExistsError(
                "Shortcode is reserved", shortcode=shortcode
            )

        with self._lock:
            now = self._clock()
            try:
                expires_at = now + timedelta(minutes=validity_minutes)
            except OverflowError:
                raise InvalidValidityError("Validity is too large") from None

            if shortcode is not None:
                if self._get_live(shortcode, now) is not None:
                    self._log("warn", f"Shortcode already exists: {shortcode}")
                    raise ShortcodeAlreadyExistsError(
                        "Shortcode already exists", shortcode=shortcode
                    )
            else:
                shortcode = self._generate_free_code(now)

            record = UrlRecord(
                shortcode=shortcode,
                original_url=url,
                created_at=now,
                expires_at=expires_at,
            )
            self._records[shortcode] = record
            self._log("info", f"URL shortened successfully: {shortcode}")
            return record.model_copy(deep=True)

    def _generate_free_code(self, now: datetime) -> str:
        for _ in range(self.max_attempts):
            candidate = generate_short_code(self.code_length)
            if candidate in self.reserved:
                continue
            if self._get_live(candidate, now) is None:
                self._log("debug", f"Generated shortcode: {candidate}")
                return candidate
        self._log("error", "Failed to generate unique shortcode")
        raise ShortcodeGenerationError("Failed to generate unique shortcode")

    def resolve(self, shortcode: str) -> UrlRecord:
        """Look up the live record for a shortcode.

        An expired record is evicted and reported as not found.

        Raises:
            ShortcodeNotFoundError: If the shortcode is absent or expired.
        """
        with self._lock:
            record = self._get_live(shortcode, self._clock())
            if record is None:
                self._log("warn", f"Shortcode not found: {shortcode}")
                raise ShortcodeNotFoundError(
                    "Short URL not found or expired", shortcode=shortcode
                )
            return record.model_copy(deep=True)

    def record_click(
        self,
        shortcode: str,
        referrer: str = "",
        ip: str = "",
        user_agent: str = "",
        location: Optional[Location] = None,
    ) -> bool:
        """Append a click to a live record.

        Clicks against absent or expired shortcodes are dropped.

        Returns:
            True if the click was recorded, False if it was dropped.
        """
        with self._lock:
            now = self._clock()
            record = self._get_live(shortcode, now)
            if record is None:
                self._log("error", f"Cannot record click - URL not found: {shortcode}")
                return False
            record.clicks.append(
                ClickRecord(
                    timestamp=now,
                    referrer=referrer,
                    ip=ip,
                    user_agent=user_agent,
                    location=location.model_copy() if location else Location(),
                )
            )
            self._log("debug", f"Click recorded for: {shortcode}")
            return True

    def list_all(self, live_only: bool = False) -> list[UrlRecord]:
        """List stored records.

        By default this is the raw view: expired records that have not been
        evicted yet are included. Pass ``live_only`` to filter them out; this
        does not evict anything.
        """
        with self._lock:
            records = list(self._records.values())
            if live_only:
                now = self._clock()
                records = [r for r in records if not r.is_expired(now)]
            return [r.model_copy(deep=True) for r in records]

    def purge_expired(self) -> int:
        """Evict every expired record.

        Returns:
            Number of records removed.
        """
        with self._lock:
            now = self._clock()
            expired = [
                code for code, record in self._records.items()
                if record.is_expired(now)
            ]
            for code in expired:
                del self._records[code]
        if expired:
            self._log("info", f"Purged {len(expired)} expired URLs")
        return len(expired)
