"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class OtpVerifyRequest(BaseModel):
    # Both fields stay loosely typed: a numeric otp is accepted and the
    # pipeline decides what counts as missing.
    email: Any = None
    otp: Any = None


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    store_configured: bool
