"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import health, stories
from core.config import get_settings
from core.logging_config import configure_logging
from services.exceptions import QueryError, ValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()
    configure_logging(app_settings.log_level)
    if app_settings.dev_mode:
        logger.warning("DEV_MODE is enabled: authentication is bypassed")
    yield


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Web Stories API",
    description="Listing, filtering and editing of web stories.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(QueryError)
async def query_error_handler(_request: Request, exc: QueryError) -> JSONResponse:
    """A failed store call fails the whole request; no partial listing is returned."""
    logger.error("Listing request failed at stage %s", exc.stage)
    return JSONResponse(
        status_code=500,
        content={"detail": "Story query failed", "code": "query_error"},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    """Malformed listing parameters."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
            "code": "invalid_param",
            "params": exc.params,
        },
    )


app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # Total headers must be readable by browser clients
    expose_headers=["X-WP-Total", "X-WP-TotalPages", "X-WP-TotalByStatus", "Link"],
)

app.include_router(health.router)
app.include_router(stories.router)
