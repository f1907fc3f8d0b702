"""
auth/hashing.py -- Password hashing and verification (bcrypt).

Uses bcrypt directly rather than a passlib wrapper: passlib's wrap-bug
detection builds a password longer than 72 bytes, which bcrypt 4.x rejects.

The work factor is fixed at 10 rounds. Primitive failures are never hidden:
hash_password() raises HashingError and verify_password() raises
ComparisonError, so a broken hash can never masquerade as a wrong password.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from users.errors import ComparisonError, HashingError

logger = logging.getLogger("acquisitions.auth")

BCRYPT_ROUNDS = 10
MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    """True if bcrypt would refuse the password (over 72 bytes as UTF-8)."""
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Return a salted bcrypt digest of the plaintext password.

    bcrypt refuses input over 72 bytes. Callers reject such passwords up front
    with password_too_long(); anything that still trips the primitive
    surfaces as HashingError.
    """
    try:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")
    except (ValueError, TypeError) as exc:
        logger.error("Error hashing the password: %s", exc)
        raise HashingError() from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext matches the digest, False if it does not."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        logger.error("Error comparing password: %s", exc)
        raise ComparisonError() from exc
