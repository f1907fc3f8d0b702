"""
auth/service.py -- Registration and credential authentication.

AuthService orchestrates the Credential Hasher (auth/hashing.py) and the
User Record Store (users/store.py). It is built with an explicit store so
the FastAPI lifespan, the CLI, and tests each inject their own.

Failures are logged with the email at the point of failure and re-raised
unchanged. Rate limiting, lockout, and attempt counting are not done here;
the HTTP layer applies slowapi limits to the login and register routes.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.hashing import hash_password, verify_password
from users.errors import DuplicateEmailError, InvalidCredentialsError, UserExistsError, UserNotFoundError
from users.models import DEFAULT_ROLE, PublicUser, User
from users.store import UserStore

logger = logging.getLogger("acquisitions.auth")


class AuthService:
    """Register new accounts and verify login credentials.

    Usage:
        service = AuthService(store)
        user = service.register("Ann", "ann@x.com", "secret1")
        same = service.authenticate("ann@x.com", "secret1")
    """

    def __init__(self, store: UserStore) -> None:
        self.store = store

    def register(self, name: str, email: str, password: str, role: str = DEFAULT_ROLE) -> PublicUser:
        """Create an account and return its public projection.

        Raises UserExistsError if the email is already registered (including
        when a concurrent registration wins the race at the UNIQUE constraint).
        """
        if self.store.get_by_email(email) is not None:
            logger.warning("Registration rejected: user %s already exists", email)
            raise UserExistsError()

        hashed = hash_password(password)
        try:
            user = self.store.create_user(name=name, email=email, hashed_password=hashed, role=role)
        except DuplicateEmailError as exc:
            logger.warning("Registration rejected: user %s already exists", email)
            raise UserExistsError() from exc
        logger.info("User %s registered with role %s", email, user.role)
        return user

    def authenticate(self, email: str, password: str) -> PublicUser:
        """Verify credentials and return the public projection of the user.

        Raises UserNotFoundError for an unknown email and
        InvalidCredentialsError when the password does not match.
        """
        user = self.store.get_by_email(email)
        if user is None:
            logger.warning("Authentication failed: user %s not found", email)
            raise UserNotFoundError()

        if not verify_password(password, user.hashed_password):
            logger.warning("Authentication failed: invalid password for %s", email)
            raise InvalidCredentialsError()

        logger.info("User %s authenticated successfully", email)
        return _to_public(user)


def _to_public(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
