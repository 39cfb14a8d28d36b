"""
OTP verification endpoint – second half of the email OTP login flow.
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from otpgate.dependencies import Verifier, require_store_config
from otpgate.models import OtpVerifyRequest, TokenResponse
from otpgate.rate_limit import VERIFY, limiter
from otpgate.services.verification import Outcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["otp"])

# Client-facing rejections.  Wrong code, no OTP record and unknown user
# must stay indistinguishable.
_REJECTIONS: dict[Outcome, tuple[int, str]] = {
    Outcome.BAD_REQUEST: (status.HTTP_400_BAD_REQUEST, "Missing required fields: email, otp"),
    Outcome.RATE_LIMITED: (
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many OTP attempts. Please try again later.",
    ),
    Outcome.INVALID_CODE: (status.HTTP_400_BAD_REQUEST, "Invalid or expired code."),
    Outcome.EXPIRED: (status.HTTP_400_BAD_REQUEST, "Code expired."),
    Outcome.NO_SUCH_USER: (status.HTTP_400_BAD_REQUEST, "Invalid or expired code."),
    Outcome.NO_ACTIVE_TOKEN: (status.HTTP_400_BAD_REQUEST, "No active token for user."),
    Outcome.TRANSIENT_ERROR: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred.",
    ),
}


@router.post(
    "/tryOTP",
    response_model=TokenResponse,
    operation_id="tryOtp",
    summary="Verify an emailed OTP and return the user's token",
    dependencies=[Depends(require_store_config)],
)
@limiter.limit(VERIFY)
async def try_otp(request: Request, verifier: Verifier) -> TokenResponse:
    """
    Check the code against the most recent OTP issued for the email.
    On success, return the token stored on the user's record.

    The body is parsed only after the configuration guard has passed.
    """
    body = await _read_body(request)
    if body is None:
        _reject(Outcome.BAD_REQUEST)

    result = await verifier.verify(body.email, body.otp)
    if result.ok:
        return TokenResponse(token=result.token)
    _reject(result.outcome)


async def _read_body(request: Request) -> OtpVerifyRequest | None:
    """Parse ``{email, otp}``; None for malformed JSON or a non-object body."""
    raw = await request.body()
    if not raw.strip():
        return OtpVerifyRequest()
    try:
        return OtpVerifyRequest.model_validate_json(raw)
    except ValidationError:
        return None


def _reject(outcome: Outcome) -> NoReturn:
    status_code, message = _REJECTIONS[outcome]
    logger.info("OTP verification rejected: %s", outcome.value)
    raise HTTPException(status_code=status_code, detail=message)
