"""
auth/ledger.py -- Refresh token ledger and access token revocation ledger.

RefreshTokenLedger
  A refresh token is only honoured while a ledger record with its exact value
  exists. Rotation consumes the record and stores its successor in one store
  transaction (TokenStore.rotate_refresh_token), so a refresh token works at
  most once. Replaying a consumed token is indistinguishable from presenting
  a forged one: both raise TokenInvalid with the same message.

RevocationLedger
  Access tokens are stateless, so logout records the presented token until
  its own exp passes. The authentication gate checks this ledger before it
  verifies the signature.
"""

from __future__ import annotations

import logging
import time

from auth.errors import TokenInvalid
from auth.models import InvalidatedAccessToken, RefreshTokenRecord, TokenPair
from auth.store import TokenStore
from auth.tokens import create_access_token, create_refresh_token, decode_refresh_token

logger = logging.getLogger("authgate.auth.ledger")


class RefreshTokenLedger:
    def __init__(self, store: TokenStore) -> None:
        self._store = store

    def issue(self, user_id: str) -> RefreshTokenRecord:
        """Mint a refresh token for user_id and record it as outstanding."""
        token = create_refresh_token(user_id)
        record = RefreshTokenRecord(token=token, user_id=user_id)
        record_id = self._store.add_refresh_token(record)
        return RefreshTokenRecord(token=token, user_id=user_id, id=record_id)

    def issue_pair(self, user_id: str) -> TokenPair:
        """Mint an access token plus a recorded refresh token (the login path)."""
        record = self.issue(user_id)
        return TokenPair(access_token=create_access_token(user_id), refresh_token=record.token)

    def rotate(self, old_token: str) -> TokenPair:
        """Exchange a refresh token for a fresh access/refresh pair.

        Raises:
            TokenExpired: old_token is past its exp.
            TokenInvalid: bad signature, malformed, or no matching ledger
                          record (already rotated, revoked at logout, or
                          never issued).
        """
        claims = decode_refresh_token(old_token)
        user_id = claims["userId"]
        successor = self._store.rotate_refresh_token(old_token, user_id, create_refresh_token(user_id))
        if successor is None:
            logger.warning("Rejected refresh token with no ledger record for user %s", user_id)
            raise TokenInvalid()
        logger.info("Rotated refresh token for user %s", user_id)
        return TokenPair(access_token=create_access_token(user_id), refresh_token=successor.token)

    def revoke_all(self, user_id: str) -> int:
        """End every outstanding refresh session for user_id. Returns records removed."""
        removed = self._store.delete_refresh_tokens_for_user(user_id)
        logger.info("Revoked %d refresh token(s) for user %s", removed, user_id)
        return removed

    def count_active(self, user_id: str) -> int:
        return self._store.count_refresh_tokens(user_id)


class RevocationLedger:
    def __init__(self, store: TokenStore) -> None:
        self._store = store

    def revoke(self, access_token: str, user_id: str, expiration_time: int) -> None:
        """Record access_token as invalid until expiration_time (epoch seconds)."""
        self._store.add_invalidated_token(
            InvalidatedAccessToken(
                access_token=access_token,
                user_id=user_id,
                expiration_time=int(expiration_time),
            )
        )

    def is_revoked(self, access_token: str) -> bool:
        return self._store.is_invalidated(access_token)

    def purge_expired(self, now: int | None = None) -> int:
        """Drop records whose token has expired on its own. Returns records removed.

        Purely storage hygiene: an expired token already fails verification,
        so removing its record never lets it through the gate.
        """
        cutoff = int(now if now is not None else time.time())
        removed = self._store.purge_invalidated(cutoff)
        if removed:
            logger.info("Purged %d expired revocation record(s)", removed)
        return removed
