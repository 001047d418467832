"""
Request gate for the API: bearer token authentication, ownership checks and
rate limiting of the authentication endpoints.

Handlers receive the caller as a typed ``schemas.Identity`` parameter via
``Depends(get_current_identity)``; nothing is stored on the request object.
"""
import json
import logging
import math
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import schemas
from ..config.settings import get_settings
from ..security import TokenError, decode_access_token
from ..services.rate_limiter import RateLimitStore, get_rate_limit_store

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets our own NO_TOKEN response
bearer_scheme = HTTPBearer(scheme_name="Bearer", auto_error=False)


def auth_exception(code: str, message: str, error: str = "Authentication failed") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message, "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(message: str = "You can only access your own data") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": "Access denied", "message": message, "code": "INSUFFICIENT_PERMISSIONS"},
    )


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> schemas.Identity:
    """Require a valid bearer token and return the identity it carries."""
    if credentials is None or not credentials.credentials:
        raise auth_exception(
            "NO_TOKEN",
            "Please provide a valid authorization token",
            error="Authentication required",
        )
    try:
        return decode_access_token(credentials.credentials)
    except TokenError as e:
        logger.warning("Rejected bearer token: %s (%s)", e.code, e.reason)
        raise auth_exception(e.code, e.message)


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[schemas.Identity]:
    """Return the caller's identity when a valid token is present, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except TokenError as e:
        logger.warning("Ignoring bearer token on optional route: %s", e.code)
        return None


def _owner_id(value: Any) -> Optional[int]:
    """Read a declared owner id; anything but an int or a string of digits is unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def ensure_owner(identity: Optional[schemas.Identity], owner_id: Any) -> None:
    """
    Compare the caller's id with a resource's declared owner id.

    This does not look anything up; callers must pass the owner id of the
    resource they actually loaded.

    Raises:
        HTTPException: 401 without an identity, 403 when the ids differ
    """
    if identity is None:
        raise auth_exception(
            "NOT_AUTHENTICATED",
            "Please log in to access this resource",
            error="Authentication required",
        )
    if _owner_id(owner_id) != identity.id:
        logger.warning("User %s denied access to resource owned by %r", identity.id, owner_id)
        raise forbidden_exception()


class RequireOwnership:
    """
    Dependency that checks a route's declared owner id against the caller.

    The owner id is read from the path parameter named ``param``, falling back
    to the same key in a JSON request body.
    """

    def __init__(self, param: str = "user_id"):
        self.param = param

    async def __call__(
        self,
        request: Request,
        identity: schemas.Identity = Depends(get_current_identity),
    ) -> schemas.Identity:
        owner_id = request.path_params.get(self.param)
        if owner_id is None:
            owner_id = (await _json_body(request)).get(self.param)
        ensure_owner(identity, owner_id)
        return identity


async def _json_body(request: Request) -> Dict[str, Any]:
    if "application/json" not in request.headers.get("content-type", ""):
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


class AuthRateLimit:
    """
    Dependency limiting attempts per client address and route path.

    ``limit_setting`` names the Settings attribute holding the maximum number
    of attempts per window, so the limit can be tuned without code changes.
    """

    def __init__(self, limit_setting: str):
        self.limit_setting = limit_setting

    def __call__(self, request: Request, store: RateLimitStore = Depends(get_rate_limit_store)) -> None:
        settings = get_settings()
        max_attempts = getattr(settings, self.limit_setting)
        client = request.client.host if request.client else "unknown"
        # route template, so /check-email/{email} shares one counter per client
        route = request.scope.get("route")
        key = f"{client}:{getattr(route, 'path', request.url.path)}"

        window = store.hit(key, settings.auth_rate_limit_window_seconds)
        if window.count > max_attempts:
            retry_after = max(1, math.ceil(window.reset_in))
            logger.warning("Rate limit exceeded for %s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": "Too many authentication attempts",
                    "message": "Please wait before trying again",
                    "code": "RATE_LIMITED",
                },
                headers={"Retry-After": str(retry_after)},
            )
