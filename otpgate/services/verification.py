"""
OTP verification pipeline.

Decides whether a submitted (email, code) pair is accepted and, if so,
returns the token already stored on the user's record.  Stages run in
order and stop at the first rejection:

    validate input → normalize email → attempt budget → latest OTP record
    → code match → freshness → user record → token

Only the most recent OTP record for the address is ever compared.  Any
exception raised during either lookup becomes TRANSIENT_ERROR; nothing is
retried.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import httpx

from otpgate.config import VerifierSettings
from otpgate.emails import mask_email, normalize_email
from otpgate.errors import RecordStoreError
from otpgate.formula import field_equals
from otpgate.rate_limit import AttemptLimiter
from otpgate.services.airtable.api_models import AirtableRecord
from otpgate.services.record_store import RecordStore

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "otp:"


class Outcome(str, Enum):
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    NO_SUCH_USER = "no_such_user"
    NO_ACTIVE_TOKEN = "no_active_token"
    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class VerificationResult:
    outcome: Outcome
    token: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def coerce_to_str(value: object) -> str:
    """
    String form of a submitted or stored code.

    ``None`` and booleans become ``""``; strings pass through untouched;
    integers and integral floats become plain decimal (``123456.0`` →
    ``"123456"``); other floats use ``repr``.  Any other type is ``""``.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpVerifier:
    """Runs the verification stages against a record store and an attempt limiter."""

    def __init__(
        self,
        store: RecordStore,
        attempt_limiter: AttemptLimiter,
        settings: VerifierSettings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._limiter = attempt_limiter
        self._settings = settings or VerifierSettings()
        self._clock = clock

    async def verify(self, email: object, otp: object) -> VerificationResult:
        raw_email = "" if email is None or isinstance(email, bool) else str(email)
        submitted_code = coerce_to_str(otp)
        if not raw_email or not submitted_code:
            return VerificationResult(Outcome.BAD_REQUEST)

        normalized = normalize_email(raw_email)
        s = self._settings

        if not self._limiter.check(
            RATE_LIMIT_PREFIX + normalized, s.max_attempts, s.attempt_window_ms
        ):
            logger.warning("Too many OTP attempts for %s", mask_email(normalized))
            return VerificationResult(Outcome.RATE_LIMITED)

        try:
            otp_record = await self._store.find_one(
                s.otp_table,
                field_equals(s.email_field, normalized),
                sort_field=s.created_at_field,
                sort_direction="desc",
            )
            if otp_record is None:
                return VerificationResult(Outcome.INVALID_CODE)

            stored_code = coerce_to_str(otp_record.field(s.code_field))
            if not stored_code or not hmac.compare_digest(
                stored_code.encode(), submitted_code.encode()
            ):
                return VerificationResult(Outcome.INVALID_CODE)

            if self._is_expired(otp_record):
                return VerificationResult(Outcome.EXPIRED)

            user_record = await self._store.find_one(
                s.users_table,
                field_equals(s.email_field, normalized),
            )
        except (RecordStoreError, httpx.HTTPError):
            logger.exception("OTP verification failed talking to the record store")
            return VerificationResult(Outcome.TRANSIENT_ERROR)
        except Exception:
            logger.exception("Unexpected error during OTP verification")
            return VerificationResult(Outcome.TRANSIENT_ERROR)

        if user_record is None:
            return VerificationResult(Outcome.NO_SUCH_USER)

        token = coerce_to_str(user_record.field(s.token_field))
        if not token:
            return VerificationResult(Outcome.NO_ACTIVE_TOKEN)

        logger.info("OTP verified for %s", mask_email(normalized))
        return VerificationResult(Outcome.SUCCESS, token=token)

    def _is_expired(self, record: AirtableRecord) -> bool:
        created_at = record.created_at()
        if created_at is None:
            if self._settings.require_timestamp:
                logger.warning("OTP record %s has no creation time; rejecting", record.id)
                return True
            return False
        age = (self._clock() - created_at).total_seconds()
        return age > self._settings.ttl_seconds
