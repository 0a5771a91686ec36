"""
auth/tokens.py -- Token issuer and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Two token kinds, each with its own secret:
       access tokens  -- sub="accessApi",    signed with ACCESS_TOKEN_SECRET
       refresh tokens -- sub="refreshToken", signed with REFRESH_TOKEN_SECRET
       Both carry userId, exp, iat and a random jti. The jti keeps two tokens
       minted for the same user within one second distinct, so revoking or
       rotating one never touches the other.

       Verification raises TokenExpired or TokenInvalid (bad signature,
       malformed, wrong purpose, missing userId). The two are kept apart
       because callers may react differently to each.

  Passwords: bcrypt directly (no passlib wrapper). The _DUMMY_HASH constant
       enables timing equalization in auth.credentials.authenticate_user() so
       response time does not reveal whether an email is registered.

  Secrets: sourced from core.config.get_settings(). The Settings class refuses
       to start in production without both secrets and rejects short or
       identical keys.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is the
kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpired, TokenInvalid
from core.config import get_settings

logger = logging.getLogger("authgate.auth.tokens")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

ACCESS_TOKEN_SUBJECT = "accessApi"
REFRESH_TOKEN_SUBJECT = "refreshToken"

# bcrypt only looks at the first 72 bytes of its input; bcrypt 4.x+ raises on
# longer input instead of truncating, so the cut is made here explicitly.
_BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("authgate_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def _encode(user_id: str, subject: str, secret: str, duration: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "userId": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=duration)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def _decode(token: str, subject: str, secret: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            subject=subject,
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise TokenInvalid() from exc
    if not isinstance(payload.get("userId"), str) or not payload["userId"]:
        raise TokenInvalid()
    return payload


def create_access_token(user_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed access token for user_id.

    Args:
        user_id:        Id of the authenticated user (userId claim).
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.access_token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.access_token_expire_seconds
    return _encode(user_id, ACCESS_TOKEN_SUBJECT, _settings.access_token_secret, duration)


def create_refresh_token(user_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed refresh token for user_id.

    The token alone grants nothing: RefreshTokenLedger only honours it while a
    matching ledger record exists.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.refresh_token_expire_seconds
    return _encode(user_id, REFRESH_TOKEN_SUBJECT, _settings.refresh_token_secret, duration)


def decode_access_token(token: str) -> dict:
    """Verify an access token and return its claims.

    Raises TokenExpired if the signature is valid but exp has passed, and
    TokenInvalid for every other failure. A refresh token presented here fails
    with TokenInvalid: it is signed with a different secret.
    """
    return _decode(token, ACCESS_TOKEN_SUBJECT, _settings.access_token_secret)


def decode_refresh_token(token: str) -> dict:
    """Verify a refresh token and return its claims. Raises like decode_access_token()."""
    return _decode(token, REFRESH_TOKEN_SUBJECT, _settings.refresh_token_secret)
