"""Unit tests for auth/service.py -- registration and credential authentication.

Covers:
- register() hashes the password, persists, and returns a digest-free projection
- Registering the same email twice fails with UserExistsError (a DuplicateEmailError)
- authenticate() succeeds only for an existing email with the matching password
- Unknown email -> UserNotFoundError; wrong password -> InvalidCredentialsError
- A corrupt stored digest surfaces as ComparisonError, never as a wrong password
"""

from dataclasses import asdict

import pytest

from auth.hashing import verify_password
from auth.service import AuthService
from users.errors import (
    ComparisonError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from users.models import PublicUser
from users.store import UserStore


class TestRegister:
    def test_returns_projection_without_digest(self, service: AuthService) -> None:
        user = service.register("Ann", "ann@x.com", "secret1")
        assert isinstance(user, PublicUser)
        assert user.name == "Ann"
        assert user.email == "ann@x.com"
        assert user.role == "user"
        assert not any("password" in key for key in asdict(user))

    def test_stores_a_verifiable_digest(self, service: AuthService, store: UserStore) -> None:
        service.register("Ann", "ann@x.com", "secret1")
        stored = store.get_by_email("ann@x.com")
        assert stored is not None
        assert stored.hashed_password != "secret1"
        assert verify_password("secret1", stored.hashed_password)

    def test_role_can_be_set(self, service: AuthService) -> None:
        assert service.register("Root", "root@x.com", "secret1", role="admin").role == "admin"

    @pytest.mark.parametrize("count", [1, 3])
    def test_distinct_emails_all_succeed(self, service: AuthService, store: UserStore, count: int) -> None:
        for i in range(count):
            service.register(f"User {i}", f"user{i}@x.com", f"password{i}")
        assert len(store.list_users()) == count

    def test_duplicate_email_rejected(self, service: AuthService, store: UserStore) -> None:
        service.register("Ann", "ann@x.com", "secret1")
        with pytest.raises(UserExistsError) as exc_info:
            service.register("Ann Again", "ann@x.com", "other-secret")
        assert isinstance(exc_info.value, DuplicateEmailError)
        assert len(store.list_users()) == 1

    def test_store_level_duplicate_reported_as_user_exists(
        self, service: AuthService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A concurrent registration that wins between the check and the insert."""
        service.register("Ann", "ann@x.com", "secret1")
        monkeypatch.setattr(service.store, "get_by_email", lambda email: None)
        with pytest.raises(UserExistsError):
            service.register("Ann Racer", "ann@x.com", "secret1")


class TestAuthenticate:
    def test_correct_password(self, service: AuthService) -> None:
        registered = service.register("Ann", "ann@x.com", "secret1")
        user = service.authenticate("ann@x.com", "secret1")
        assert user == registered

    def test_wrong_password(self, service: AuthService) -> None:
        service.register("Ann", "ann@x.com", "secret1")
        with pytest.raises(InvalidCredentialsError):
            service.authenticate("ann@x.com", "secret2")

    def test_unknown_email(self, service: AuthService) -> None:
        with pytest.raises(UserNotFoundError) as exc_info:
            service.authenticate("nobody@x.com", "secret1")
        assert isinstance(exc_info.value, NotFoundError)

    def test_other_users_password_rejected(self, service: AuthService) -> None:
        service.register("Ann", "ann@x.com", "secret1")
        service.register("Bob", "bob@x.com", "secret2")
        with pytest.raises(InvalidCredentialsError):
            service.authenticate("ann@x.com", "secret2")

    def test_role_is_current(self, service: AuthService, store: UserStore) -> None:
        registered = service.register("Ann", "ann@x.com", "secret1")
        store.update_user(registered.id, role="admin")
        assert service.authenticate("ann@x.com", "secret1").role == "admin"

    def test_corrupt_digest_raises_comparison_error(self, service: AuthService, store: UserStore) -> None:
        from users.store import _users

        registered = service.register("Ann", "ann@x.com", "secret1")
        with store.engine.begin() as conn:
            conn.execute(_users.update().where(_users.c.id == registered.id).values(hashed_password="garbage"))
        with pytest.raises(ComparisonError):
            service.authenticate("ann@x.com", "secret1")
