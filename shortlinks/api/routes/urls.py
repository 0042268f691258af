"""Short URL API routes.

This module contains all endpoints for short URL operations:
- Create short URL (POST /shorturls)
- List stored URLs (GET /shorturls)
- Get URL statistics (GET /shorturls/{shortcode})
- Redirect to original URL (GET /{shortcode})
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from ...core.store import ShortcodeStore
from ...models.url import ErrorResponse, ShortUrlCreate
from ...schemas.url import ShortUrlCreateResponse, UrlStatsResponse
from ...utils.geo import GeoResolver, client_ip, locate
from ...utils.shortener import create_short_url
from ..dependencies import get_base_url, get_geo_resolver, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Short URLs"])


@router.post(
    "/shorturls",
    response_model=ShortUrlCreateResponse,
    status_code=201,
    responses={
        201: {"description": "Short URL created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Shortcode already exists"},
    },
    summary="Create a short URL",
    description="Create a short URL that expires after `validity` minutes (default 24 hours).",
)
async def create_short_url_endpoint(
    url_data: ShortUrlCreate,
    store: ShortcodeStore = Depends(get_store),
    base_url: str = Depends(get_base_url),
) -> ShortUrlCreateResponse:
    """Create a short URL from a long URL.

    Args:
        url_data: URL creation data.
        store: Shortcode store.
        base_url: Public base URL for short links.

    Returns:
        Created short URL information.
    """
    logger.info("Received create short URL request")
    record = store.allocate(
        url_data.url,
        validity_minutes=url_data.validity,
        shortcode=url_data.shortcode,
    )
    logger.info(f"Short URL created successfully: {record.shortcode}")
    return ShortUrlCreateResponse.from_record(
        record, create_short_url(base_url, record.shortcode)
    )


@router.get(
    "/shorturls",
    response_model=list[UrlStatsResponse],
    summary="List stored URLs",
    description=(
        "List every stored URL, including expired ones that have not been "
        "evicted yet, unless `live_only` is set."
    ),
)
async def list_short_urls(
    live_only: bool = False,
    store: ShortcodeStore = Depends(get_store),
) -> list[UrlStatsResponse]:
    return [
        UrlStatsResponse.from_record(record)
        for record in store.list_all(live_only=live_only)
    ]


@router.get(
    "/shorturls/{shortcode}",
    response_model=UrlStatsResponse,
    responses={
        200: {"description": "URL statistics retrieved"},
        404: {"model": ErrorResponse, "description": "Short URL not found or expired"},
    },
    summary="Get URL statistics",
)
async def get_url_stats(
    shortcode: str,
    store: ShortcodeStore = Depends(get_store),
) -> UrlStatsResponse:
    """Get click statistics for a short URL.

    Args:
        shortcode: The shortcode.
        store: Shortcode store.

    Returns:
        URL statistics with click history.
    """
    logger.info(f"Fetching stats for: {shortcode}")
    record = store.resolve(shortcode)
    return UrlStatsResponse.from_record(record)


@router.get(
    "/{shortcode}",
    response_class=RedirectResponse,
    status_code=302,
    responses={
        302: {"description": "Redirect to original URL"},
        404: {"model": ErrorResponse, "description": "Short URL not found or expired"},
    },
    summary="Redirect to original URL",
)
async def redirect_to_url(
    shortcode: str,
    request: Request,
    store: ShortcodeStore = Depends(get_store),
    geo_resolver: GeoResolver = Depends(get_geo_resolver),
) -> RedirectResponse:
    """Redirect to the original URL and record the click.

    Args:
        shortcode: The shortcode.
        request: FastAPI request object.
        store: Shortcode store.
        geo_resolver: Geolocation lookup for the click.

    Returns:
        Redirect response to original URL.
    """
    logger.info(f"Redirect request for: {shortcode}")
    record = store.resolve(shortcode)

    # Analytics are best-effort; the redirect goes out regardless
    try:
        ip = client_ip(request)
        store.record_click(
            shortcode,
            referrer=request.headers.get("referer", ""),
            ip=ip,
            user_agent=request.headers.get("user-agent", ""),
            location=locate(geo_resolver, ip),
        )
    except Exception as e:
        logger.error(f"Failed to record click for {shortcode}: {e}")

    logger.info(f"Redirecting to: {record.original_url}")
    return RedirectResponse(url=record.original_url, status_code=302)
