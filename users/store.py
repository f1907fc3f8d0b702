"""
users/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _row_to_public are the mappers.
Route and service code never touches SQL directly.

Injection:
  UserStore owns its engine and is built explicitly from a database URL --
  there is no module-level connection. The FastAPI lifespan constructs one at
  startup and calls close() at shutdown; tests construct in-memory stores.

Uniqueness:
  users.email carries a UNIQUE constraint, which is the source of truth. The
  explicit existence read before each write is a fast path that produces a
  clean DuplicateEmailError in the common case. Two concurrent writers can
  both pass the read; the loser then hits IntegrityError, which is translated
  to DuplicateEmailError as well.

Errors:
  Domain failures raise the classes in users/errors.py. Any other
  SQLAlchemyError is logged with the record's id/email and re-raised as
  PersistenceError chained to the original exception.

Security:
  All queries use bound parameters. Read methods that serve callers select
  _PUBLIC_COLUMNS only -- the digest column is read solely by get_by_email(),
  which backs credential verification.

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from users.errors import AccountError, DuplicateEmailError, NotFoundError, PersistenceError
from users.models import DEFAULT_ROLE, ROLES, DeletedUser, PublicUser, User

logger = logging.getLogger("acquisitions.users")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),  # bcrypt digest, never plaintext
    Column("role", String(30), nullable=False, server_default=DEFAULT_ROLE),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_PUBLIC_COLUMNS = (
    _users.c.id,
    _users.c.name,
    _users.c.email,
    _users.c.role,
    _users.c.created_at,
    _users.c.updated_at,
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}; expected one of {ROLES!r}")


@contextmanager
def _storage_errors(action: str, ident: object) -> Iterator[None]:
    """Translate unanticipated SQLAlchemy failures into PersistenceError.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Error %s %s", action, ident)
        raise PersistenceError() from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///acquisitions.db")
        created = store.create_user("Ann", "ann@x.com", hash_password("secret1"))
        user = store.get_by_id(created.id)
        store.close()
    """

    # Only these columns may be changed through update_user(). id, created_at
    # and the digest are never rewritten here.
    _UPDATABLE_FIELDS: frozenset = frozenset({"name", "email", "role"})

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with _storage_errors("counting users", "*"):
            with self.engine.connect() as conn:
                row = conn.execute(select(_users.c.id).limit(1)).fetchone()
        return row is not None

    def get_by_id(self, user_id: int) -> PublicUser:
        """Return the public projection of a user. Raises NotFoundError if absent."""
        with _storage_errors("getting user by id", user_id):
            with self.engine.connect() as conn:
                row = conn.execute(select(*_PUBLIC_COLUMNS).where(_users.c.id == user_id)).fetchone()
        if row is None:
            logger.warning("User %s not found", user_id)
            raise NotFoundError()
        return _row_to_public(row)

    def get_by_email(self, email: str) -> User | None:
        """Look up a full record (digest included) by exact email.

        Internal to credential checks -- never hand the result to a caller.
        """
        with _storage_errors("getting user by email", email):
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[PublicUser]:
        """Return every user ordered by id. No pagination, no filtering."""
        with _storage_errors("listing users", "*"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(*_PUBLIC_COLUMNS).order_by(_users.c.id)).fetchall()
        return [_row_to_public(r) for r in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    # ------------------------------------------------------------------
    # Writes -- each runs in a single transaction
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, hashed_password: str, role: str = DEFAULT_ROLE) -> PublicUser:
        """Insert a new user and return its public projection.

        Raises DuplicateEmailError if the email is taken, whether the pre-check
        or the UNIQUE constraint catches it.
        """
        _check_role(role)
        with _storage_errors("creating user", email):
            try:
                with self.engine.begin() as conn:
                    if _email_owner(conn, email) is not None:
                        logger.warning("Create rejected: email %s already exists", email)
                        raise DuplicateEmailError()
                    now = _now_iso()
                    result = conn.execute(
                        _users.insert().values(
                            name=name,
                            email=email,
                            hashed_password=hashed_password,
                            role=role,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    user_id = result.inserted_primary_key[0]
                    row = conn.execute(select(*_PUBLIC_COLUMNS).where(_users.c.id == user_id)).one()
            except IntegrityError as exc:
                raise self._integrity_failure(exc, email) from exc
        logger.info("User %s created successfully", email)
        return _row_to_public(row)

    def update_user(self, user_id: int, **fields) -> PublicUser:
        """Apply a partial update and return the updated public projection.

        Accepted fields: name, email, role. Order inside the transaction:
        existence check, then email uniqueness against all other records,
        then the write. updated_at is stamped on every call.

        Raises NotFoundError, DuplicateEmailError, or ValueError for unknown
        fields / roles.
        """
        unknown = set(fields) - self._UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if "role" in fields:
            _check_role(fields["role"])
        new_email = fields.get("email")

        with _storage_errors("updating user", user_id):
            try:
                with self.engine.begin() as conn:
                    current = conn.execute(
                        select(_users.c.id, _users.c.email).where(_users.c.id == user_id)
                    ).fetchone()
                    if current is None:
                        logger.warning("Update rejected: user %s not found", user_id)
                        raise NotFoundError()
                    if new_email is not None and new_email != current.email:
                        owner = _email_owner(conn, new_email)
                        if owner is not None and owner != user_id:
                            logger.warning("Update rejected: email %s already used by user %s", new_email, owner)
                            raise DuplicateEmailError()
                    conn.execute(_users.update().where(_users.c.id == user_id).values(**fields, updated_at=_now_iso()))
                    row = conn.execute(select(*_PUBLIC_COLUMNS).where(_users.c.id == user_id)).one()
            except IntegrityError as exc:
                raise self._integrity_failure(exc, new_email) from exc
        logger.info("User %s updated successfully", user_id)
        return _row_to_public(row)

    def delete_user(self, user_id: int) -> DeletedUser:
        """Permanently delete a user and return its minimal projection.

        Raises NotFoundError if the record does not exist.
        """
        with _storage_errors("deleting user", user_id):
            with self.engine.begin() as conn:
                row = conn.execute(
                    select(_users.c.id, _users.c.email, _users.c.name, _users.c.role).where(_users.c.id == user_id)
                ).fetchone()
                if row is None:
                    logger.warning("Delete rejected: user %s not found", user_id)
                    raise NotFoundError()
                conn.execute(_users.delete().where(_users.c.id == user_id))
        logger.info("User %s deleted successfully", row.email)
        return DeletedUser(id=row.id, email=row.email, name=row.name, role=row.role)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _integrity_failure(self, exc: IntegrityError, email: str | None) -> AccountError:
        """Decide what an IntegrityError on a user write means.

        Re-reads on a fresh connection (the failed transaction is already
        rolled back). If the email now belongs to a record, a concurrent
        writer won the race.
        """
        if email is not None:
            with self.engine.connect() as conn:
                if _email_owner(conn, email) is not None:
                    logger.warning("Email %s was claimed by a concurrent write", email)
                    return DuplicateEmailError()
        logger.error("Integrity error writing user %s: %s", email, exc.orig)
        return PersistenceError()


def _email_owner(conn, email: str) -> int | None:
    row = conn.execute(select(_users.c.id).where(_users.c.email == email)).fetchone()
    return row.id if row is not None else None


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_public(row) -> PublicUser:
    return PublicUser(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
