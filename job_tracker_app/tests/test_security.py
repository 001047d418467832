"""
Test password hashing and access token issue/verification.
"""
import time
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from jose import jwt

from job_tracker_app.backend.config.settings import get_settings
from job_tracker_app.backend.security import (
    InvalidTokenError,
    PasswordHashingError,
    TokenExpiredError,
    TokenNotYetValidError,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


@pytest.fixture
def token_user():
    return SimpleNamespace(id=5, email="jane@example.com", first_name="Jane", last_name="Doe")


class TestPasswordHashing:
    """bcrypt hashing and verification."""

    def test_hash_verifies_against_original_password(self):
        hashed = get_password_hash("Str0ng!Passw0rd")

        assert hashed != "Str0ng!Passw0rd"
        assert hashed.startswith("$2")
        assert verify_password("Str0ng!Passw0rd", hashed)

    def test_wrong_password_does_not_verify(self):
        hashed = get_password_hash("Str0ng!Passw0rd")
        assert not verify_password("Wr0ng!Passw0rd", hashed)

    def test_same_password_hashes_differently(self):
        assert get_password_hash("Str0ng!Passw0rd") != get_password_hash("Str0ng!Passw0rd")

    def test_hash_uses_configured_cost(self):
        hashed = get_password_hash("Str0ng!Passw0rd")
        cost = int(hashed.split("$")[2])
        assert cost == get_settings().bcrypt_rounds

    def test_default_cost_factor_is_ten(self):
        from job_tracker_app.backend.config.settings import Settings

        assert Settings.model_fields["bcrypt_rounds"].default == 10

    def test_cost_factor_out_of_range_is_rejected(self):
        from pydantic import ValidationError
        from job_tracker_app.backend.config.settings import Settings

        with patch.dict("os.environ", {"BCRYPT_ROUNDS": "3"}):
            with pytest.raises(ValidationError):
                Settings()

    def test_malformed_stored_hash_raises(self):
        with pytest.raises(PasswordHashingError):
            verify_password("Str0ng!Passw0rd", "not-a-bcrypt-hash")


class TestAccessTokens:
    """Token claims and the distinct verification failures."""

    def test_round_trip_identity(self, token_user):
        identity = decode_access_token(create_access_token(token_user))

        assert identity.id == 5
        assert identity.email == "jane@example.com"
        assert identity.first_name == "Jane"
        assert identity.last_name == "Doe"

    def test_claims_carry_issuer_audience_and_expiry(self, token_user):
        settings = get_settings()
        token = create_access_token(token_user)
        claims = jwt.get_unverified_claims(token)

        assert claims["iss"] == "jobtracker-api"
        assert claims["aud"] == "jobtracker-app"
        assert claims["sub"] == "5"
        assert claims["userId"] == 5
        lifetime = claims["exp"] - claims["iat"]
        assert lifetime == settings.access_token_expire_days * 24 * 60 * 60
        assert settings.access_token_expire_days == 7

    def test_expired_token(self, token_user):
        token = create_access_token(token_user, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_not_yet_valid_token(self, token_user):
        token = create_access_token(token_user, not_before=datetime.now(timezone.utc) + timedelta(hours=1))
        with pytest.raises(TokenNotYetValidError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.code == "TOKEN_NOT_YET_VALID"

    def test_not_before_in_the_past_is_accepted(self, token_user):
        token = create_access_token(token_user, not_before=datetime.now(timezone.utc) - timedelta(minutes=1))
        assert decode_access_token(token).id == 5

    def test_wrong_secret_is_invalid(self, token_user):
        settings = get_settings()
        now = int(time.time())
        forged = jwt.encode(
            {"sub": "5", "userId": 5, "email": "jane@example.com", "iat": now, "exp": now + 3600,
             "iss": settings.jwt_issuer, "aud": settings.jwt_audience},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError) as exc_info:
            decode_access_token(forged)
        assert exc_info.value.code == "INVALID_TOKEN"

    def test_wrong_audience_is_invalid(self, token_user):
        settings = get_settings()
        now = int(time.time())
        token = jwt.encode(
            {"sub": "5", "userId": 5, "email": "jane@example.com", "iat": now, "exp": now + 3600,
             "iss": settings.jwt_issuer, "aud": "someone-else"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_wrong_issuer_is_invalid(self, token_user):
        settings = get_settings()
        now = int(time.time())
        token = jwt.encode(
            {"sub": "5", "userId": 5, "email": "jane@example.com", "iat": now, "exp": now + 3600,
             "iss": "someone-else", "aud": settings.jwt_audience},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_garbage_token_is_invalid(self):
        with pytest.raises(InvalidTokenError):
            decode_access_token("not.a.token")
