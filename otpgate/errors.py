"""Exception types raised inside the service."""

from __future__ import annotations


class OtpGateError(Exception):
    """Base class for errors raised by otpgate."""


class ConfigurationError(OtpGateError):
    """The deployment is missing a required setting."""


class RecordStoreError(OtpGateError):
    """The record store could not be reached or returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
