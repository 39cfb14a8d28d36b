"""Tests for the /api/tryOTP endpoint."""

from datetime import timedelta

from fastapi.testclient import TestClient

from otpgate.main import app
from tests.mocks.records import otp_record, user_record

EMAIL = "user@example.com"


class TestTryOtp:
    def test_success_returns_token(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))
        store.add("Users", user_record(EMAIL, token="tok_live_1"))

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 200
        assert resp.json() == {"token": "tok_live_1"}

    def test_numeric_otp_in_body(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))
        store.add("Users", user_record(EMAIL, token="tok_live_1"))

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": 123456})

        assert resp.status_code == 200

    def test_wrong_code(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))
        store.add("Users", user_record(EMAIL))

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "000000"})

        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid or expired code."}

    def test_expired_code(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456", age=timedelta(minutes=10)))
        store.add("Users", user_record(EMAIL))

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 400
        assert resp.json() == {"message": "Code expired."}

    def test_unknown_user_reads_like_wrong_code(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))

        unknown = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})
        wrong = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "000000"})

        assert unknown.status_code == wrong.status_code == 400
        assert unknown.json() == wrong.json()

    def test_no_otp_issued_reads_like_wrong_code(self, client, store):
        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid or expired code."}

    def test_user_without_token(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))
        store.add("Users", user_record(EMAIL, token=""))

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 400
        assert resp.json() == {"message": "No active token for user."}

    def test_rate_limited_after_ten_attempts(self, client, store):
        store.add("OTP", otp_record(EMAIL, "123456"))
        store.add("Users", user_record(EMAIL))

        for i in range(10):
            resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "000000"})
            assert resp.status_code == 400, f"Attempt {i + 1} should not be rate-limited"

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})
        assert resp.status_code == 429
        assert resp.json() == {"message": "Too many OTP attempts. Please try again later."}

    def test_rate_limit_keyed_on_normalized_email(self, client, store):
        for i in range(10):
            variant = EMAIL.upper() if i % 2 else f"  {EMAIL} "
            client.post("/api/tryOTP", json={"email": variant, "otp": "000000"})

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "000000"})
        assert resp.status_code == 429

    def test_store_failure_is_generic(self, client, store):
        store.fail_on.add("OTP")

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 500
        assert resp.json() == {"message": "An unexpected error occurred."}

    def test_unexpected_store_exception_is_generic(self, client, store):
        store.error = RuntimeError("boom")

        resp = client.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})

        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.json() == {"message": "An unexpected error occurred."}


class TestBadRequests:
    def test_missing_otp(self, client):
        resp = client.post("/api/tryOTP", json={"email": EMAIL})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Missing required fields: email, otp"}

    def test_missing_email(self, client):
        resp = client.post("/api/tryOTP", json={"otp": "123456"})
        assert resp.status_code == 400

    def test_empty_body(self, client):
        resp = client.post("/api/tryOTP")
        assert resp.status_code == 400

    def test_malformed_json(self, client):
        resp = client.post(
            "/api/tryOTP",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"message": "Missing required fields: email, otp"}

    def test_non_object_body(self, client):
        resp = client.post("/api/tryOTP", json=["user@example.com", "123456"])
        assert resp.status_code == 400


class TestMethodAndConfig:
    def test_get_not_allowed(self, client):
        resp = client.get("/api/tryOTP")
        assert resp.status_code == 405
        assert resp.headers["allow"] == "POST"
        assert resp.json() == {"message": "Method Not Allowed"}

    def test_missing_api_key_fails_closed(self, _test_env, store, monkeypatch):
        import otpgate.config as config_mod
        from otpgate.dependencies import get_record_store

        monkeypatch.setattr(config_mod, "AIRTABLE_API_KEY", "")
        app.dependency_overrides[get_record_store] = lambda: store
        try:
            with TestClient(app, raise_server_exceptions=False) as tc:
                resp = tc.post("/api/tryOTP", json={"email": EMAIL, "otp": "123456"})
        finally:
            app.dependency_overrides.clear()

        assert resp.status_code == 500
        assert resp.json() == {"message": "Server configuration error"}
        assert store.calls == []

    def test_missing_api_key_checked_before_body(self, _test_env, monkeypatch):
        import otpgate.config as config_mod

        monkeypatch.setattr(config_mod, "AIRTABLE_API_KEY", "")
        with TestClient(app, raise_server_exceptions=False) as tc:
            resp = tc.post("/api/tryOTP", json={})

        assert resp.status_code == 500
        assert resp.json() == {"message": "Server configuration error"}

    def test_missing_api_key_checked_before_malformed_body(self, _test_env, monkeypatch):
        import otpgate.config as config_mod

        monkeypatch.setattr(config_mod, "AIRTABLE_API_KEY", "")
        with TestClient(app, raise_server_exceptions=False) as tc:
            resp = tc.post(
                "/api/tryOTP",
                content=b"{not json",
                headers={"Content-Type": "application/json"},
            )

        assert resp.status_code == 500
        assert resp.json() == {"message": "Server configuration error"}
