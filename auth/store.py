"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore and TokenStore are the repositories; the _row_to_* functions are
the mappers. Ledger, credential and route code never touches SQL directly.

Both stores are plain objects with an explicit lifecycle: construct at
startup (api/main.py lifespan), close() at shutdown. Nothing in this module
holds a module-level connection.

Security:
  All queries use bound parameters. No f-strings in SQL.

Concurrency:
  SQLite runs in WAL mode so readers never block on the single writer. The
  `timeout` argument bounds how long a statement waits for a lock (SQLite) or
  a pooled connection (other backends); exceeding it raises
  sqlalchemy.exc.OperationalError.

  rotate_refresh_token() is the one operation that must be atomic. The DELETE
  of the presented token and the INSERT of its successor share a transaction,
  and the DELETE's row count decides the winner: of two concurrent rotations
  of the same token only one can delete the row.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine

from auth.models import InvalidatedAccessToken, RefreshTokenRecord, Role, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default=Role.member.value),
    Column("created_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token", Text, nullable=False, unique=True),
    Column("user_id", String(32), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
)

# access_token is indexed but not unique: a duplicate revoke is harmless
# because is_invalidated() only checks for existence.
_invalidated_tokens = Table(
    "invalidated_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("access_token", Text, nullable=False, index=True),
    Column("user_id", String(32), nullable=False),
    Column("expiration_time", Integer, nullable=False, index=True),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _make_engine(db_url: str, timeout: float) -> Engine:
    if db_url.startswith("sqlite"):
        engine = create_engine(db_url, connect_args={"check_same_thread": False, "timeout": timeout})
        event.listen(engine, "connect", _set_wal_mode)
    else:
        engine = create_engine(db_url, pool_pre_ping=True, pool_timeout=timeout)
    _metadata.create_all(engine)
    return engine


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _Store:
    def __init__(self, db_url: str, timeout: float = 5.0) -> None:
        self.engine: Engine = _make_engine(db_url, timeout)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore(_Store):
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///authgate.db")
        user_id = store.create_user(User(name="Alice", email="a@x.com", password_hash=hash_password("pw")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers treat that as a conflict raised by a concurrent registration.
        """
        user_id = uuid.uuid4().hex
        with self.engine.begin() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    role=Role(user.role).value,
                    created_at=_now_iso(),
                )
            )
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def email_exists(self, email: str) -> bool:
        with self.engine.connect() as conn:
            found = conn.execute(select(_users.c.id).where(_users.c.email == email)).first()
        return found is not None


# ---------------------------------------------------------------------------
# Refresh and revocation ledgers
# ---------------------------------------------------------------------------


class TokenStore(_Store):
    """Repository for refresh-token records and invalidated access tokens."""

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    def add_refresh_token(self, record: RefreshTokenRecord) -> int:
        """Insert a refresh-token record and return its row id."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _refresh_tokens.insert().values(
                    token=record.token,
                    user_id=record.user_id,
                    created_at=_now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def rotate_refresh_token(self, old_token: str, user_id: str, new_token: str) -> RefreshTokenRecord | None:
        """Consume old_token and store new_token in a single transaction.

        Returns the successor record, or None if no record matched
        (old_token was already consumed, never issued, or belongs to another
        user). Nothing is written in the None case.
        """
        with self.engine.begin() as conn:
            deleted = conn.execute(
                _refresh_tokens.delete().where(
                    (_refresh_tokens.c.token == old_token) & (_refresh_tokens.c.user_id == user_id)
                )
            )
            if deleted.rowcount != 1:
                return None
            created_at = _now_iso()
            result = conn.execute(
                _refresh_tokens.insert().values(token=new_token, user_id=user_id, created_at=created_at)
            )
        return RefreshTokenRecord(
            id=result.inserted_primary_key[0],
            token=new_token,
            user_id=user_id,
            created_at=created_at,
        )

    def delete_refresh_tokens_for_user(self, user_id: str) -> int:
        """Remove every refresh-token record owned by user_id. Returns rows removed."""
        with self.engine.begin() as conn:
            result = conn.execute(_refresh_tokens.delete().where(_refresh_tokens.c.user_id == user_id))
        return result.rowcount

    def count_refresh_tokens(self, user_id: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_refresh_tokens).where(_refresh_tokens.c.user_id == user_id)
            ).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Invalidated access tokens
    # ------------------------------------------------------------------

    def add_invalidated_token(self, record: InvalidatedAccessToken) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                _invalidated_tokens.insert().values(
                    access_token=record.access_token,
                    user_id=record.user_id,
                    expiration_time=record.expiration_time,
                )
            )

    def is_invalidated(self, access_token: str) -> bool:
        """Existence check by raw token value."""
        with self.engine.connect() as conn:
            found = conn.execute(
                select(_invalidated_tokens.c.id).where(_invalidated_tokens.c.access_token == access_token).limit(1)
            ).first()
        return found is not None

    def purge_invalidated(self, now_epoch: int) -> int:
        """Delete records whose expiration_time is before now_epoch. Returns rows removed."""
        with self.engine.begin() as conn:
            result = conn.execute(_invalidated_tokens.delete().where(_invalidated_tokens.c.expiration_time < now_epoch))
        return result.rowcount


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=Role(row.role),
        created_at=row.created_at,
    )
