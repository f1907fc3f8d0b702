"""
api/routes/v1/users.py -- User record endpoints.

Routes:
  GET    /api/users       -- list every user (public unless PUBLIC_USER_LISTING=false)
  GET    /api/users/{id}  -- one user (requires auth)
  PUT    /api/users/{id}  -- partial update (requires auth; self or admin)
  DELETE /api/users/{id}  -- permanent delete (admin only)

Auth policy for PUT:
  - admins may update any record, including role
  - other users may update only their own record and may not change role

NotFoundError / DuplicateEmailError raised by the store reach the
AccountError handler in api/main.py (404 / 409).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import DeletedUserResponse, PublicUserResponse, UserUpdate
from auth.dependencies import get_current_user, require_admin, user_listing_guard
from users.models import PublicUser
from users.store import UserStore

router = APIRouter()


@router.get("/users", response_model=list[PublicUserResponse])
def list_users(
    request: Request,
    viewer: Optional[PublicUser] = Depends(user_listing_guard),
) -> list[PublicUserResponse]:
    """Return every user. No pagination, no filtering."""
    user_store: UserStore = request.app.state.user_store
    return [PublicUserResponse.from_domain(u) for u in user_store.list_users()]


@router.get("/users/{user_id}", response_model=PublicUserResponse)
def get_user(
    request: Request,
    user_id: int,
    current_user: PublicUser = Depends(get_current_user),
) -> PublicUserResponse:
    user_store: UserStore = request.app.state.user_store
    return PublicUserResponse.from_domain(user_store.get_by_id(user_id))


@router.put("/users/{user_id}", response_model=PublicUserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserUpdate,
    current_user: PublicUser = Depends(get_current_user),
) -> PublicUserResponse:
    """Update name, email, or role on a user record."""
    changes = body.changes()

    if current_user.role != "admin":
        if current_user.id != user_id:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "You can only update your own account."},
            )
        if "role" in changes:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Only admins can change roles."},
            )

    user_store: UserStore = request.app.state.user_store
    return PublicUserResponse.from_domain(user_store.update_user(user_id, **changes))


@router.delete("/users/{user_id}", response_model=DeletedUserResponse)
def delete_user(
    request: Request,
    user_id: int,
    current_user: PublicUser = Depends(require_admin),
) -> DeletedUserResponse:
    """Permanently delete a user record. Admin only."""
    user_store: UserStore = request.app.state.user_store
    return DeletedUserResponse.from_domain(user_store.delete_user(user_id))
