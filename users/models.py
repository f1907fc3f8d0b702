"""
users/models.py -- Domain dataclasses for the user entity and its projections.

Pattern: Data class (pure data container, zero logic). The store builds these
from rows; routes map them to response models.

User carries the bcrypt digest and never leaves the core except through the
internal authentication lookup (UserStore.get_by_email). Everything returned
to callers is a PublicUser or a DeletedUser, neither of which has a password
field at all.

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLES: tuple[str, ...] = ("user", "admin")
DEFAULT_ROLE = "user"


@dataclass
class User:
    """Full user record, including the password digest."""

    name: str
    email: str
    hashed_password: str
    role: str = DEFAULT_ROLE  # "user" | "admin"
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on every write


@dataclass(frozen=True)
class PublicUser:
    """Projection safe to return to any caller."""

    id: int
    name: str
    email: str
    role: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class DeletedUser:
    """Minimal projection of a record that no longer exists."""

    id: int
    email: str
    name: str
    role: str
