"""
FastAPI application for otp-gate.

The lifespan owns the long-lived collaborators: the Airtable client (one
connection pool for the process) and the attempt limiter.  Both live on
``app.state`` and reach the routes through otpgate.dependencies.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from otpgate import config
from otpgate.errors import ConfigurationError
from otpgate.rate_limit import AttemptLimiter, limiter
from otpgate.routers import health, otp
from otpgate.services.airtable.client import AirtableClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.attempt_limiter = AttemptLimiter(config.RATE_LIMIT_STORAGE_URI)
    app.state.record_store = None
    if config.store_configured():
        app.state.record_store = AirtableClient(
            config.AIRTABLE_API_KEY,
            config.AIRTABLE_BASE_ID,
            api_base=config.AIRTABLE_API_BASE,
            timeout=config.AIRTABLE_TIMEOUT_SECONDS,
        )
    else:
        logger.warning("AIRTABLE_API_KEY is not set – OTP verification will fail closed")
    logger.info(
        "otp-gate started (env=%s, rate-limit storage=%s)",
        config.ENVIRONMENT,
        config.RATE_LIMIT_STORAGE_URI,
    )
    try:
        yield
    finally:
        if app.state.record_store is not None:
            await app.state.record_store.close()
        logger.info("otp-gate stopped")


app = FastAPI(
    title="otp-gate",
    description="Verifies emailed one-time passcodes and returns the user's token",
    version=config.VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter


# ── Error rendering ───────────────────────────────────────────────────────
# Every error body is {"message": ...}.


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server configuration error"},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Per-IP rate limit hit on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": "Too many requests. Please try again later."},
    )


app.include_router(health.router)
app.include_router(otp.router)
