"""
Password hashing and bearer token handling.

Passwords are hashed with bcrypt at a fixed work factor. Access tokens are
stateless HS256 JWTs carrying the user's identity; there is no server-side
revocation, so a token stays valid until it expires even after logout.
"""
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from . import schemas
from .config.settings import get_settings

logger = logging.getLogger(__name__)


class PasswordHashingError(Exception):
    """Hashing or verification could not be carried out (not a wrong password)."""


class TokenSigningError(Exception):
    """An access token could not be produced."""


class TokenError(Exception):
    """Base class for token verification failures."""
    code = "AUTH_FAILED"
    message = "Authentication failed"

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or self.message)
        self.reason = reason or self.message


class TokenExpiredError(TokenError):
    code = "TOKEN_EXPIRED"
    message = "Your session has expired, please log in again"


class InvalidTokenError(TokenError):
    code = "INVALID_TOKEN"
    message = "Invalid authentication token"


class TokenNotYetValidError(TokenError):
    code = "TOKEN_NOT_YET_VALID"
    message = "Authentication token is not valid yet"


def get_password_hash(password: str) -> str:
    """Hash a plaintext password with a fresh salt."""
    rounds = get_settings().bcrypt_rounds
    try:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    except (ValueError, TypeError) as e:
        raise PasswordHashingError(f"Failed to hash password: {e}") from e
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored bcrypt hash.

    Returns False for a wrong password. A stored value that is not a usable
    bcrypt hash raises PasswordHashingError.
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError) as e:
        raise PasswordHashingError(f"Failed to verify password: {e}") from e


def create_access_token(user: Any, expires_delta: Optional[timedelta] = None,
                        not_before: Optional[datetime] = None) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user: Object with id, email, first_name and last_name attributes
        expires_delta: Lifetime of the token, defaults to the configured number of days
        not_before: Optional time before which the token must be rejected

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(days=settings.access_token_expire_days)

    claims: Dict[str, Any] = {
        "sub": str(user.id),
        "userId": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "iat": now,
        "exp": now + expires_delta,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    if not_before is not None:
        claims["nbf"] = not_before

    try:
        return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    except JWTError as e:
        logger.error("Failed to sign access token for user %s: %s", user.id, e)
        raise TokenSigningError("Failed to generate token") from e


def decode_access_token(token: str) -> schemas.Identity:
    """
    Verify a token's signature, issuer, audience and validity window.

    Raises:
        TokenExpiredError: the token is past its expiry
        TokenNotYetValidError: the token's not-before time is in the future
        InvalidTokenError: anything else (malformed, bad signature, wrong issuer or audience)
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            # nbf is checked below so it gets its own error type
            options={"verify_nbf": False},
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e

    nbf = payload.get("nbf")
    if nbf is not None:
        if not isinstance(nbf, (int, float)):
            raise InvalidTokenError("Invalid token: nbf claim must be a number")
        if nbf > time.time():
            raise TokenNotYetValidError()

    user_id = payload.get("userId", payload.get("sub"))
    email = payload.get("email")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise InvalidTokenError("Invalid token: missing user id")
    if not email:
        raise InvalidTokenError("Invalid token: missing email")

    return schemas.Identity(
        id=user_id,
        email=email,
        first_name=payload.get("firstName"),
        last_name=payload.get("lastName"),
    )
