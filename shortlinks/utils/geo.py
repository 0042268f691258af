"""Geolocation helpers for click analytics.

A geolocation resolver is any callable ``ip -> {country, region, city}``
where any field may be missing. Lookups never fail a redirect: missing
fields and resolver errors both become ``"Unknown"``.
"""

import ipaddress
import logging
from typing import Callable, Mapping, Optional

from fastapi import Request

from ..models.url import UNKNOWN, Location

logger = logging.getLogger(__name__)

GeoResolver = Callable[[str], Optional[Mapping[str, Optional[str]]]]


def no_lookup(ip: str) -> Optional[Mapping[str, Optional[str]]]:
    """Resolver used when no geolocation backend is configured."""
    return None


def is_public_ip(ip: str) -> bool:
    """Check whether an address is worth looking up."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_global


def locate(resolver: GeoResolver, ip: str) -> Location:
    """Resolve an IP to a Location, defaulting every missing field.

    Args:
        resolver: Geolocation lookup function.
        ip: Client IP address.

    Returns:
        Location with "Unknown" for anything the resolver did not supply.
    """
    if not is_public_ip(ip):
        return Location()
    try:
        found = resolver(ip) or {}
    except Exception as e:
        logger.warning(f"Geolocation lookup failed for {ip}: {e}")
        return Location()
    return Location(
        country=found.get("country") or UNKNOWN,
        region=found.get("region") or UNKNOWN,
        city=found.get("city") or UNKNOWN,
    )


def client_ip(request: Request) -> str:
    """Get the client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else ""
