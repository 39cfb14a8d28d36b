"""
Shared test fixtures.

Provides a FastAPI TestClient wired to:
  • an in-memory fake record store (no external HTTP)
  • a fresh in-memory attempt limiter
  • a dummy Airtable credential so the config guard lets requests through

Per-IP slowapi limiting is disabled, as the attempt limiter is what the
tests exercise.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from otpgate.dependencies import get_attempt_limiter, get_record_store
from otpgate.main import app
from otpgate.rate_limit import AttemptLimiter
from tests.mocks.records import FakeRecordStore


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def _test_env(monkeypatch):
    """Patch configuration so the app lifespan runs without real credentials."""
    import otpgate.config as config_mod

    monkeypatch.setattr(config_mod, "AIRTABLE_API_KEY", "key-test")
    monkeypatch.setattr(config_mod, "AIRTABLE_BASE_ID", "appTEST")

    # ── Disable per-IP rate limiting in tests ─────────────────────────
    from otpgate.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)


@pytest.fixture()
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture()
def attempt_limiter() -> AttemptLimiter:
    return AttemptLimiter("memory://")


@pytest.fixture()
def client(_test_env, store: FakeRecordStore, attempt_limiter: AttemptLimiter) -> TestClient:
    """
    TestClient with the fake store and a private attempt limiter.

    Uses a context manager so the lifespan runs.
    """
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_attempt_limiter] = lambda: attempt_limiter

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()
