"""MaxMind GeoIP2 geolocation resolver.

Reads a local GeoLite2/GeoIP2 City database, so lookups never leave the
process. Fields follow the coarse shape used for click analytics: ISO country
code, most specific subdivision code and city name.
"""

import logging
from typing import Mapping, Optional

import geoip2.database
import geoip2.errors

logger = logging.getLogger(__name__)


class GeoIP2Resolver:
    """Geolocation resolver backed by a GeoIP2 City database."""

    def __init__(self, db_path: str):
        """Open the database.

        Args:
            db_path: Path to a ``.mmdb`` City database.
        """
        self.db_path = db_path
        self._reader = geoip2.database.Reader(db_path)
        logger.info(f"Loaded GeoIP database: {db_path}")

    def __call__(self, ip: str) -> Optional[Mapping[str, Optional[str]]]:
        try:
            response = self._reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return None
        return {
            "country": response.country.iso_code,
            "region": response.subdivisions.most_specific.iso_code,
            "city": response.city.name,
        }

    def close(self) -> None:
        self._reader.close()
