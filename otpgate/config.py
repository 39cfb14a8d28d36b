"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
VERSION = "0.1.0"

# ── Airtable (record store) ───────────────────────────────────────────────

AIRTABLE_API_KEY: str = os.getenv("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID: str = os.getenv("AIRTABLE_BASE_ID", "appg245A41MWc6Rej")
AIRTABLE_USERS_TABLE: str = os.getenv("AIRTABLE_USERS_TABLE", "Users")
AIRTABLE_OTP_TABLE: str = os.getenv("AIRTABLE_OTP_TABLE", "OTP")
AIRTABLE_API_BASE: str = os.getenv("AIRTABLE_API_BASE", "https://api.airtable.com/v0")

# Outbound calls give up after this many seconds and count as a store failure.
AIRTABLE_TIMEOUT_SECONDS: float = float(os.getenv("AIRTABLE_TIMEOUT_SECONDS", "5"))

# ── OTP verification ──────────────────────────────────────────────────────

OTP_TTL_SECONDS: int = int(os.getenv("OTP_TTL_SECONDS", "300"))
OTP_MAX_ATTEMPTS: int = int(os.getenv("OTP_MAX_ATTEMPTS", "10"))
OTP_ATTEMPT_WINDOW_MS: int = int(os.getenv("OTP_ATTEMPT_WINDOW_MS", "300000"))

# OTP records without a creation timestamp cannot be checked for freshness.
# "false" keeps them usable (never expire), "true" rejects them as expired.
OTP_REQUIRE_TIMESTAMP: bool = os.getenv("OTP_REQUIRE_TIMESTAMP", "false").lower() == "true"

# ── Rate limiting ─────────────────────────────────────────────────────────

# Any `limits` storage URI. "memory://" is per-process; point every instance
# at the same "redis://host:6379" to share the attempt budget.
RATE_LIMIT_STORAGE_URI: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

# Outer per-client-IP limit on the verify endpoint (slowapi rate string).
OTP_VERIFY_IP_LIMIT: str = os.getenv("OTP_VERIFY_IP_LIMIT", "30/minute")


def store_configured() -> bool:
    """True when the record store credential is present."""
    return bool(AIRTABLE_API_KEY)


@dataclass(frozen=True)
class VerifierSettings:
    """Snapshot of the values the verification pipeline depends on."""

    otp_table: str = "OTP"
    users_table: str = "Users"
    email_field: str = "Email"
    code_field: str = "OTP"
    token_field: str = "token"
    created_at_field: str = "Created At"
    ttl_seconds: int = 300
    max_attempts: int = 10
    attempt_window_ms: int = 300_000
    require_timestamp: bool = False


def verifier_settings() -> VerifierSettings:
    return VerifierSettings(
        otp_table=AIRTABLE_OTP_TABLE,
        users_table=AIRTABLE_USERS_TABLE,
        ttl_seconds=OTP_TTL_SECONDS,
        max_attempts=OTP_MAX_ATTEMPTS,
        attempt_window_ms=OTP_ATTEMPT_WINDOW_MS,
        require_timestamp=OTP_REQUIRE_TIMESTAMP,
    )
