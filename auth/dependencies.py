"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and
role-gated authorization.

Two token carriers are checked in priority order:
  1. JWT cookie ("access_token") -- set by POST /api/auth/login and /register.
  2. Authorization: Bearer <token> header -- API clients.

Both converge on a PublicUser reloaded from the store, so the role attached
to the request is always the current one.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_role() builds a dependency that also raises HTTP 403 when the
principal's role is not allowed. require_admin is require_role(["admin"]).

Layer rule: may import from fastapi (Depends/HTTPException/Request) because
this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from fastapi import HTTPException, Request

from auth.tokens import COOKIE_NAME, decode_access_token
from core.config import get_settings
from users.errors import NotFoundError
from users.models import PublicUser


def try_get_current_user(request: Request) -> PublicUser | None:
    """Attempt to authenticate the request via cookie or Bearer header.

    Returns the current PublicUser on success, None when no valid token is
    presented or its user no longer exists. Storage failures propagate.
    """
    token: str | None = request.cookies.get(COOKIE_NAME)

    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]

    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        return request.app.state.user_store.get_by_id(payload.get("user_id"))
    except NotFoundError:
        return None


def get_current_user(request: Request) -> PublicUser:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: PublicUser = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_role(allowed_roles: Iterable[str]) -> Callable[[Request], PublicUser]:
    """Build a dependency that admits only principals whose role is allowed.

    Use as a FastAPI dependency:
        @router.delete("/things/{id}")
        def route(user: PublicUser = Depends(require_role(["admin"]))): ...
    """
    allowed = frozenset(allowed_roles)

    def dependency(request: Request) -> PublicUser:
        user = get_current_user(request)
        if user.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Insufficient permissions."},
            )
        return user

    return dependency


require_admin = require_role(["admin"])


def user_listing_guard(request: Request) -> PublicUser | None:
    """Gate for GET /api/users.

    Public by default; PUBLIC_USER_LISTING=false makes it require a token.
    """
    if get_settings().public_user_listing:
        return None
    return get_current_user(request)
