"""
auth/tokens.py -- JWT issue/verify and the auth cookie.

JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
user_id, email (as sub), role, and expiry. Verification returns None on any
failure -- the dependency layer turns that into a 401.

The role claim is informational only. auth/dependencies.py reloads the user
from the store on every request, so a demoted or deleted account loses
access immediately rather than when its token expires.

Layer rule: no imports from api/ or users/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import get_settings

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "access_token"


def create_access_token(user_id: int, email: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT for the given identity.

    expire_seconds of 0 (default) uses Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "sub": email,
        "user_id": user_id,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
        if "user_id" not in payload or "role" not in payload:
            return None
        return payload
    except JWTError:
        return None


def set_auth_cookie(response, token: str) -> None:
    """Write the JWT as an httpOnly cookie on the response.

    samesite="lax" keeps the cookie off cross-site POSTs. secure is driven by
    SECURE_COOKIES so local http development still works. max_age matches the
    JWT expiry so both expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(COOKIE_NAME)
