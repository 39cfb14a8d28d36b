"""
Email address normalization.

Submitted addresses are canonicalized before they are used as a rate-limit
key or interpolated into a record-store filter.  Anything that fails
validation collapses to the empty string, which matches no record.
"""

from __future__ import annotations

import logging
import re

from email_validator import EmailNotValidError, validate_email

logger = logging.getLogger(__name__)

# ECMAScript whitespace and line terminators; Python's \s differs (it
# lacks U+FEFF and adds U+001C-U+001F and U+0085).
_WHITESPACE = re.compile(
    "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


def is_valid_email(value: str) -> bool:
    """Syntax-only check (no DNS lookups)."""
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_email(value: object) -> str:
    """
    Lowercase, drop every whitespace character, then validate.

    Returns the canonical address, or ``""`` when the input is not a valid
    email.  Never raises for malformed input.
    """
    if value is None:
        return ""
    normalized = _WHITESPACE.sub("", str(value).lower())
    if not is_valid_email(normalized):
        logger.debug("Rejected malformed email input")
        return ""
    return normalized


def mask_email(email: str) -> str:
    """Shorten an address for log lines: ``jane@example.com`` → ``j***@example.com``."""
    local, sep, domain = email.partition("@")
    if not sep:
        return "<invalid>" if email else "<empty>"
    return f"{local[:1]}***@{domain}"
