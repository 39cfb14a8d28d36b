import logging
from typing import Annotated

from fastapi import Depends, Request

from otpgate import config
from otpgate.errors import ConfigurationError
from otpgate.rate_limit import AttemptLimiter
from otpgate.services.record_store import RecordStore
from otpgate.services.verification import OtpVerifier

logger = logging.getLogger(__name__)


# ── Configuration guard ────────────────────────────────────────────────────


def require_store_config() -> None:
    """Fail closed before the request body is looked at."""
    if not config.store_configured():
        logger.error("AIRTABLE_API_KEY is not set; rejecting request")
        raise ConfigurationError("AIRTABLE_API_KEY is not set")


# ── Collaborators held on app.state by the lifespan ────────────────────────


def get_record_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise ConfigurationError("Record store was not initialised")
    return store


def get_attempt_limiter(request: Request) -> AttemptLimiter:
    return request.app.state.attempt_limiter


def get_verifier(
    store: Annotated[RecordStore, Depends(get_record_store)],
    attempt_limiter: Annotated[AttemptLimiter, Depends(get_attempt_limiter)],
) -> OtpVerifier:
    return OtpVerifier(store, attempt_limiter, config.verifier_settings())


Verifier = Annotated[OtpVerifier, Depends(get_verifier)]
