"""Shortlinks Service - Main FastAPI Application.

A URL shortening service with:
- Short URLs with custom or generated shortcodes
- Expiring links (24 hours unless a validity is given)
- Redirects with per-click analytics (referrer, coarse location)
- Optional remote log delivery
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.middleware import RequestLoggingMiddleware
from .api.routes import health_router, urls_router
from .core.config import Settings, settings as default_settings
from .core.exceptions import (
    InvalidShortcodeFormatError,
    InvalidValidityError,
    ShortcodeAlreadyExistsError,
    ShortcodeNotFoundError,
    ShortlinkError,
)
from .core.remote_log import RemoteLogHandler, RemoteLogSink
from .core.store import ShortcodeStore
from .utils.geo import GeoResolver, no_lookup
from .utils.geoip import GeoIP2Resolver

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Loggers whose records are forwarded to the remote sink. The store reports
# its own events through the emitter it is constructed with.
REMOTE_LOGGERS = ("shortlinks.api", __name__)

ERROR_STATUS = {
    InvalidShortcodeFormatError: 400,
    InvalidValidityError: 400,
    ShortcodeAlreadyExistsError: 409,
    ShortcodeNotFoundError: 404,
}


def error_body(status_code: int, message: str) -> dict:
    return {"error": HTTPStatus(status_code).phrase, "message": message}


def reserved_codes(app: FastAPI) -> set[str]:
    """First path segments of the app's fixed routes."""
    codes = set()
    for route in app.routes:
        first = getattr(route, "path", "").lstrip("/").split("/")[0]
        if first and "{" not in first:
            codes.add(first)
    return codes


async def sweep_expired(store: ShortcodeStore, interval: float) -> None:
    """Periodically evict expired records."""
    while True:
        await asyncio.sleep(interval)
        store.purge_expired()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ShortcodeStore] = None,
    geo_resolver: Optional[GeoResolver] = None,
    log_sink: Optional[RemoteLogSink] = None,
) -> FastAPI:
    """Create the FastAPI application and its collaborators.

    Args:
        settings: Application settings. Defaults to environment settings.
        store: Shortcode store. Built from settings when omitted.
        geo_resolver: Geolocation lookup. Defaults to a GeoIP2 database
            reader when ``geoip_db_path`` is configured, else no lookup.
        log_sink: Remote log sink. Built when ``log_api_url`` is configured.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or default_settings
    if log_sink is None and settings.log_api_url:
        log_sink = RemoteLogSink(
            settings.log_api_url,
            token=settings.log_api_token,
            timeout=settings.log_timeout_seconds,
            queue_size=settings.log_queue_size,
        )
    owned_resolver = None
    if geo_resolver is None and settings.geoip_db_path:
        geo_resolver = owned_resolver = GeoIP2Resolver(settings.geoip_db_path)
    if store is None:
        store = ShortcodeStore(
            emit=log_sink.log if log_sink else None,
            code_length=settings.short_code_length,
            max_attempts=settings.max_generation_attempts,
            default_validity_minutes=settings.default_validity_minutes,
            stack=settings.log_stack,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown events."""
        handler = None
        if log_sink is not None:
            log_sink.start()
            handler = RemoteLogHandler(log_sink, stack=settings.log_stack)
            for name in REMOTE_LOGGERS:
                logging.getLogger(name).addHandler(handler)

        sweeper = None
        if settings.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(
                sweep_expired(store, settings.sweep_interval_seconds)
            )

        logger.info(f"Starting {settings.app_title}...")
        yield
        logger.info(f"Shutting down {settings.app_title}...")

        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        if handler is not None:
            for name in REMOTE_LOGGERS:
                logging.getLogger(name).removeHandler(handler)
            log_sink.close()
        if owned_resolver is not None:
            owned_resolver.close()

    app = FastAPI(
        title=settings.app_title,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.geo_resolver = geo_resolver or no_lookup

    # Add middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ShortlinkError)
    async def shortlink_exception_handler(request: Request, exc: ShortlinkError):
        """Map store errors to HTTP responses."""
        status_code = ERROR_STATUS.get(type(exc))
        if status_code is None:
            logger.error(f"Store error: {exc.message}")
            return JSONResponse(
                status_code=500,
                content=error_body(500, "Something went wrong"),
            )
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status_code, content=error_body(status_code, exc.message)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Report request validation failures as 400 Bad Request."""
        problems = []
        for error in exc.errors():
            field = error["loc"][-1] if error["loc"] else "body"
            message = error["msg"].removeprefix("Value error, ")
            problems.append(f"{field}: {message}")
        message = "; ".join(problems) or "Invalid request"
        logger.warning(f"Invalid request to {request.url.path}: {message}")
        return JSONResponse(status_code=400, content=error_body(400, message))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """General exception handler."""
        logger.error(f"Unhandled Exception: {exc}")
        return JSONResponse(
            status_code=500,
            content=error_body(500, "Something went wrong"),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(urls_router)

    # Shortcodes equal to another route's first segment could never redirect
    store.reserved = store.reserved | reserved_codes(app)

    return app


app = create_app()
