"""
users/errors.py -- Closed error taxonomy for the account core.

Every failure the core can report is one of the classes below. Each carries a
stable `code` so callers branch on the exception type (or its code), never on
message text. The HTTP status mapping lives in api/main.py -- this module has
no knowledge of HTTP.

Hierarchy:
  AccountError
    DuplicateEmailError
      UserExistsError          -- registration of an already-registered email
    NotFoundError
      UserNotFoundError        -- login with an unknown email
    InvalidCredentialsError
    HashingError
    ComparisonError
    PersistenceError           -- any unanticipated storage failure

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for all account-core failures."""

    code: str = "account_error"
    default_message: str = "Account operation failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class DuplicateEmailError(AccountError):
    code = "duplicate_email"
    default_message = "Email already exists."


class UserExistsError(DuplicateEmailError):
    code = "user_exists"
    default_message = "User already exists."


class NotFoundError(AccountError):
    code = "not_found"
    default_message = "User not found."


class UserNotFoundError(NotFoundError):
    code = "user_not_found"


class InvalidCredentialsError(AccountError):
    code = "invalid_credentials"
    default_message = "Invalid password."


class HashingError(AccountError):
    """The hashing primitive failed. Never replaced by a fallback digest."""

    code = "hashing_error"
    default_message = "Error hashing password."


class ComparisonError(AccountError):
    """The verification primitive failed. Never reported as a non-match."""

    code = "comparison_error"
    default_message = "Error comparing password."


class PersistenceError(AccountError):
    code = "persistence_error"
    default_message = "Storage operation failed."
