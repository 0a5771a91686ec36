"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, ledgers and
routes do the work; these classes only own the domain shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of roles a user can hold.

    Stored as the plain string value in the users table. Any other string is
    rejected at the API layer (Pydantic) and by Role(value) in the store mapper.
    """

    member = "member"
    moderator = "moderator"
    admin = "admin"


@dataclass
class User:
    """A registered identity.

    id is None before the record is written to the database; the store
    assigns a 32-char uuid4 hex string on insert. password_hash is always a
    bcrypt hash -- the plaintext password never reaches this class.
    """

    name: str
    email: str
    password_hash: str
    role: Role = Role.member
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class RefreshTokenRecord:
    """One outstanding refresh token in the ledger.

    Records are never updated. Rotation deletes the consumed record and
    inserts its successor; logout deletes every record for the user.
    """

    token: str
    user_id: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class InvalidatedAccessToken:
    """An access token revoked at logout.

    expiration_time is the token's own exp claim (epoch seconds). Past that
    instant the token fails signature verification anyway, so the record is
    only kept for storage hygiene until the purge removes it.
    """

    access_token: str
    user_id: str
    expiration_time: int


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, produced by the authentication gate.

    token is the raw access token value as presented, kept so logout can
    record it in the revocation ledger. exp is the token's expiry claim.
    """

    user_id: str
    token: str
    exp: int


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
