"""
Airtable integration constants.

Credentials, base id and table names are deployment settings and live in
otpgate.config; this module only describes how requests are shaped.
"""

from __future__ import annotations

# ── HTTP defaults ─────────────────────────────────────────────────────────

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "otp-gate/0.1",
    "Accept": "application/json",
    "Content-Type": "application/json",
}

SORT_DIRECTIONS = ("asc", "desc")

# Response bodies included in error logs are cut to this many characters.
MAX_ERROR_BODY = 500
