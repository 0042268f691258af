"""FastAPI dependencies resolving per-application collaborators."""

from fastapi import Request

from ..core.store import ShortcodeStore
from ..utils.geo import GeoResolver


def get_store(request: Request) -> ShortcodeStore:
    """Get the store owned by the running application."""
    return request.app.state.store


def get_geo_resolver(request: Request) -> GeoResolver:
    """Get the geolocation resolver owned by the running application."""
    return request.app.state.geo_resolver


def get_base_url(request: Request) -> str:
    """Get the public base URL for short links.

    Falls back to the request's own base URL when none is configured.
    """
    configured = request.app.state.settings.base_url
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")
