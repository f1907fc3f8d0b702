"""
API request and response models for the Acquisitions REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in users/models.py, which
own the internal domain representation. Route handlers map between the two.

No response model has a password field. PublicUserResponse is built from a
PublicUser, which never carries the digest in the first place.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from auth.hashing import MAX_PASSWORD_BYTES, password_too_long
from users.models import DeletedUser, PublicUser

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    admin = "admin"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class _EmailNormalizer(BaseModel):
    """Shared email normalization: trimmed and lower-cased before validation."""

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class _CredentialsBody(_EmailNormalizer):
    """Adds the bcrypt byte limit on top of the per-model character bounds."""

    @field_validator("password", check_fields=False)
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
        return value


class RegisterRequest(_CredentialsBody):
    """Request body for POST /api/auth/register.

    Passwords are capped at 72 characters and 72 UTF-8 bytes, since bcrypt
    rejects longer input. The password is taken verbatim, with no whitespace
    stripping.
    """

    name: str = Field(min_length=2, max_length=255)
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=6, max_length=72)
    role: RoleEnum = RoleEnum.user


class LoginRequest(_CredentialsBody):
    """Request body for POST /api/auth/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=72)


class UserUpdate(_EmailNormalizer):
    """Request body for PUT /api/users/{id}.

    All fields optional, but at least one must be present. Unknown fields
    (including "password") are rejected rather than silently dropped.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[EmailStr] = Field(default=None, max_length=255)
    role: Optional[RoleEnum] = None

    @model_validator(mode="after")
    def require_one_field(self) -> "UserUpdate":
        if self.name is None and self.email is None and self.role is None:
            raise ValueError("At least one field must be provided.")
        return self

    def changes(self) -> dict:
        """Return only the fields the caller actually set, as plain values."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublicUserResponse(BaseModel):
    """A user record as exposed over HTTP."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: str
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, user: PublicUser) -> "PublicUserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class DeletedUserResponse(BaseModel):
    """Response body for DELETE /api/users/{id} -- the record that was removed."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    role: str

    @classmethod
    def from_domain(cls, user: DeletedUser) -> "DeletedUserResponse":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class AuthResponse(BaseModel):
    """Response body for POST /api/auth/register and /api/auth/login.

    The token is also written to the httpOnly access_token cookie; it is
    repeated here for API clients that send it as a Bearer header.
    """

    message: str
    user: PublicUserResponse
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "OK"
    timestamp: str
    uptime: float
    database: str = "ok"


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every exception handler."""

    error: ErrorDetail

