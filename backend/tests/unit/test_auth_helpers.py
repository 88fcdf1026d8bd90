"""Tests for auth helper functions.

Session token hashing, bcrypt checks, cookie management and the
registration token minted after OTP verification.
"""

import hashlib
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import bcrypt
import jwt
import pytest
from fastapi import Response

from campus_erp.core.auth import (
    DUMMY_HASH,
    REGISTRATION_TOKEN_AUDIENCE,
    check_password,
    clear_session_cookie,
    create_registration_token,
    hash_password,
    hash_session_token,
    new_session_token,
    set_session_cookie,
)
from campus_erp.core.config import settings

# Test-only secret for JWT tests
_TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow


def _decode(token: str) -> dict:
    return jwt.decode(
        token,
        _TEST_SECRET,
        algorithms=["HS256"],
        audience=REGISTRATION_TOKEN_AUDIENCE,
        issuer=settings.auth_issuer,
    )


class TestCreateRegistrationToken:
    """Tests for create_registration_token()."""

    def test_binds_form_number(self):
        token = create_registration_token(ccat_form_no="CCAT-1", secret=_TEST_SECRET)
        assert _decode(token)["ccatFormNo"] == "CCAT-1"

    def test_contains_required_claims(self):
        payload = _decode(
            create_registration_token(ccat_form_no="CCAT-1", secret=_TEST_SECRET)
        )
        for claim in ("ccatFormNo", "aud", "iss", "exp", "iat"):
            assert claim in payload, f"Missing claim: {claim}"

    def test_default_lifetime_is_fifteen_minutes(self):
        payload = _decode(
            create_registration_token(ccat_form_no="CCAT-1", secret=_TEST_SECRET)
        )
        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_custom_expiration(self):
        token = create_registration_token(
            ccat_form_no="CCAT-1",
            secret=_TEST_SECRET,
            expires_delta=timedelta(minutes=5),
        )
        seconds_until_exp = _decode(token)["exp"] - datetime.now(UTC).timestamp()
        assert 280 < seconds_until_exp < 310

    def test_wrong_secret_rejected(self):
        token = create_registration_token(ccat_form_no="CCAT-1", secret=_TEST_SECRET)
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(
                token,
                "another-secret-that-is-also-32-characters-long",
                algorithms=["HS256"],
                audience=REGISTRATION_TOKEN_AUDIENCE,
            )

    def test_expired_token_rejected(self):
        token = create_registration_token(
            ccat_form_no="CCAT-1",
            secret=_TEST_SECRET,
            expires_delta=timedelta(seconds=-1),
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            _decode(token)


class TestSessionTokens:
    def test_tokens_are_unique(self):
        assert len({new_session_token() for _ in range(50)}) == 50

    def test_hash_is_sha256_hex(self):
        assert hash_session_token("abc") == hashlib.sha256(b"abc").hexdigest()
        assert len(hash_session_token(new_session_token())) == 64


class TestPasswords:
    def test_hash_then_check(self):
        with patch("campus_erp.core.auth._BCRYPT_ROUNDS", 4):
            stored = hash_password("s3cret-pass")
        assert check_password("s3cret-pass", stored) is True
        assert check_password("wrong", stored) is False

    def test_missing_hash_uses_dummy(self):
        with patch("campus_erp.core.auth.bcrypt.checkpw", return_value=True) as checkpw:
            assert check_password("anything", None) is False
        checkpw.assert_called_once_with(b"anything", DUMMY_HASH)

    def test_dummy_hash_is_valid_bcrypt(self):
        # Must not raise: checkpw rejects malformed hashes with ValueError
        assert bcrypt.checkpw(b"x", DUMMY_HASH) is False


class TestSessionCookie:
    def test_set_cookie_attributes(self):
        response = Response()
        set_session_cookie(response, "tok")

        header = response.headers["set-cookie"]
        assert header.startswith(f"{settings.session_cookie_name}=tok")
        lowered = header.lower()
        assert "httponly" in lowered
        assert "path=/" in lowered
        assert f"max-age={settings.session_ttl_minutes * 60}" in lowered

    def test_secure_flag_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "session_cookie_secure", False)
        response = Response()
        set_session_cookie(response, "tok")
        assert "secure" not in response.headers["set-cookie"].lower()

    def test_clear_cookie_expires_immediately(self):
        response = Response()
        clear_session_cookie(response)

        header = response.headers["set-cookie"].lower()
        assert "max-age=0" in header
        assert "httponly" in header
