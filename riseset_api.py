"""FastAPI application serving Sun and Moon rise/set times."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.astro import Body, compute_rise_set
from core.calendar import RiseSetCalculator, build_calendar, rise_set_or_error
from core.params import lenient_defaulting, strict_validation
from core.settings import Settings, load_settings
from models import CalendarPage, ErrorResponse, MapsKeyResponse, RiseSet

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("riseset-api")

APP_DESCRIPTION = "Moon and Sun rise and set times for any location"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' 'unsafe-eval' blob: "
        "https://maps.googleapis.com https://code.jquery.com; "
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "img-src 'self' data: blob: https://*.googleapis.com https://*.gstatic.com; "
        "font-src 'self' https://fonts.gstatic.com; "
        "connect-src 'self' data: https://maps.googleapis.com https://*.gstatic.com; "
        "worker-src blob:"
    ),
}
STATIC_CACHE_CONTROL = "public, max-age=604800, immutable"

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_calculator() -> RiseSetCalculator:
    return compute_rise_set


def get_clock() -> datetime:
    return datetime.now(UTC)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request, settings: Settings = Depends(get_settings)) -> HTMLResponse:
    return settings.templates.TemplateResponse(
        request, "index.html", {"google_maps_key": settings.google_maps_key}
    )


@router.get("/about", response_class=HTMLResponse, include_in_schema=False)
def about(request: Request, settings: Settings = Depends(get_settings)) -> HTMLResponse:
    return settings.templates.TemplateResponse(request, "about.html", {})


@router.get("/gettimes", response_model=RiseSet)
def gettimes(
    lon: str = "",
    lat: str = "",
    zon: str = "",
    calculator: RiseSetCalculator = Depends(get_calculator),
    now: datetime = Depends(get_clock),
) -> RiseSet:
    """Today's moonrise and moonset at the given location.

    Every parameter is required. Any missing, unparsable or out-of-range
    value yields ``{"rise": "error", "set": "error"}`` rather than a default.
    """

    query = strict_validation(lon, lat, zon)
    if query is None:
        result = RiseSet.error()
    else:
        # Fractional zones such as +9.5 are added in full, not truncated to hours.
        instant = now + timedelta(hours=query.zone_offset_hours)
        result = rise_set_or_error(calculator, Body.moon, instant, query)

    LOGGER.info(
        json.dumps(
            {
                "event": "gettimes",
                "lon": lon,
                "lat": lat,
                "zon": zon,
                "valid": query is not None,
                "error": result.is_error,
            }
        )
    )
    return result


@router.get("/calendar", response_class=HTMLResponse)
def calendar(
    request: Request,
    lon: Optional[str] = None,
    lat: Optional[str] = None,
    zon: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    calculator: RiseSetCalculator = Depends(get_calculator),
    now: datetime = Depends(get_clock),
) -> HTMLResponse:
    """Ten days of Moon and Sun rise/set times.

    Bad or missing parameters fall back to the default location.
    """

    query = lenient_defaulting(lon, lat, zon)
    page = CalendarPage(
        rows=build_calendar(query, now, calculator),
        lon=query.longitude,
        lat=query.latitude,
        zon=query.zone_offset_hours,
    )

    error_cells = sum(row.moon.is_error + row.sun.is_error for row in page.rows)
    LOGGER.info(
        json.dumps(
            {
                "event": "calendar",
                "lon": page.lon,
                "lat": page.lat,
                "zon": page.zon,
                "error_cells": error_cells,
            }
        )
    )
    return settings.templates.TemplateResponse(request, "calendar.html", {"page": page})


@router.get("/api/maps-key", response_model=MapsKeyResponse)
def maps_key(settings: Settings = Depends(get_settings)) -> MapsKeyResponse:
    return MapsKeyResponse(key=settings.google_maps_key)


@router.get("/favicon.ico", include_in_schema=False)
def favicon(settings: Settings = Depends(get_settings)) -> FileResponse:
    path = settings.static_dir / "favicon.ico"
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "port": settings.port,
                "production": settings.production,
                "templates": str(settings.template_dir),
                "static": str(settings.static_dir),
            }
        )
    )
    yield
    LOGGER.info(json.dumps({"event": "shutdown"}))


async def not_found_or_http_error(
    request: Request, exc: StarletteHTTPException
) -> HTMLResponse | JSONResponse:
    if exc.status_code == 404:
        settings: Settings = request.app.state.settings
        return settings.templates.TemplateResponse(
            request, "404.html", {}, status_code=404
        )
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(SECURITY_HEADERS)
    if request.url.path.startswith("/static/") and response.status_code < 400:
        response.headers["Cache-Control"] = STATIC_CACHE_CONTROL
    return response


async def request_logger(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": "request",
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around a settings object that never changes afterwards."""

    settings = settings or load_settings()
    docs_url = None if settings.production else "/docs"
    app = FastAPI(
        title="Riseset",
        description=APP_DESCRIPTION,
        version="1.0.0",
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=None,
        openapi_url=None if settings.production else "/openapi.json",
    )
    app.state.settings = settings

    app.add_exception_handler(StarletteHTTPException, not_found_or_http_error)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    # Added last runs first: the logger wraps the security headers.
    app.middleware("http")(security_headers)
    app.middleware("http")(request_logger)

    app.include_router(router)
    app.mount(
        "/static",
        StaticFiles(directory=str(settings.static_dir), check_dir=False),
        name="static",
    )
    return app


app = create_app()


def main() -> None:  # pragma: no cover - process entry point
    settings: Settings = app.state.settings
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=120,
        timeout_graceful_shutdown=5,
        log_level="info",
    )


if __name__ == "__main__":  # pragma: no cover
    main()
