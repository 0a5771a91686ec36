"""Unit tests for auth/tokens.py -- token issuer and password hashing.

Covers:
- bcrypt hash/verify, including a malformed stored hash
- Access and refresh tokens carry the purpose subject, userId and exp
- Tokens minted back-to-back for the same user are distinct
- Expired tokens raise TokenExpired; tampered, foreign-secret, wrong-purpose
  and malformed tokens raise TokenInvalid
"""

import time

import pytest
from jose import jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.tokens import (
    ACCESS_TOKEN_SUBJECT,
    REFRESH_TOKEN_SUBJECT,
    _settings,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)


def _forge(claims: dict, secret: str) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


class TestPasswordHashing:
    def test_hash_is_salted_and_verifies(self):
        h1 = hash_password("pw123")
        h2 = hash_password("pw123")
        assert h1 != h2
        assert "pw123" not in h1
        assert verify_password("pw123", h1)
        assert verify_password("pw123", h2)

    def test_wrong_password_fails(self):
        assert not verify_password("nope", hash_password("pw123"))

    def test_malformed_hash_fails_closed(self):
        assert not verify_password("pw123", "not-a-bcrypt-hash")

    def test_long_password_does_not_raise(self):
        long_pw = "x" * 200
        assert verify_password(long_pw, hash_password(long_pw))


class TestAccessTokens:
    def test_claims(self):
        before = int(time.time())
        claims = decode_access_token(create_access_token("user-1"))
        assert claims["sub"] == ACCESS_TOKEN_SUBJECT
        assert claims["userId"] == "user-1"
        assert claims["exp"] >= before + _settings.access_token_expire_seconds

    def test_custom_lifetime(self):
        claims = decode_access_token(create_access_token("user-1", expire_seconds=5))
        assert claims["exp"] - claims["iat"] == 5

    def test_back_to_back_tokens_differ(self):
        assert create_access_token("user-1") != create_access_token("user-1")

    def test_expired_raises_token_expired(self):
        now = int(time.time())
        token = _forge(
            {"sub": ACCESS_TOKEN_SUBJECT, "userId": "user-1", "iat": now - 120, "exp": now - 60},
            _settings.access_token_secret,
        )
        with pytest.raises(TokenExpired):
            decode_access_token(token)

    def test_tampered_signature_rejected(self):
        token = create_access_token("user-1")
        head, payload, sig = token.split(".")
        tampered = f"{head}.{payload}.{'A' if sig[0] != 'A' else 'B'}{sig[1:]}"
        with pytest.raises(TokenInvalid):
            decode_access_token(tampered)

    def test_foreign_secret_rejected(self):
        token = _forge(
            {"sub": ACCESS_TOKEN_SUBJECT, "userId": "user-1", "exp": int(time.time()) + 60},
            "some-other-secret-that-is-long-enough-000",
        )
        with pytest.raises(TokenInvalid):
            decode_access_token(token)

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(TokenInvalid):
            decode_access_token(create_refresh_token("user-1"))

    def test_wrong_subject_rejected(self):
        token = _forge(
            {"sub": "somethingElse", "userId": "user-1", "exp": int(time.time()) + 60},
            _settings.access_token_secret,
        )
        with pytest.raises(TokenInvalid):
            decode_access_token(token)

    def test_missing_user_id_rejected(self):
        token = _forge(
            {"sub": ACCESS_TOKEN_SUBJECT, "exp": int(time.time()) + 60},
            _settings.access_token_secret,
        )
        with pytest.raises(TokenInvalid):
            decode_access_token(token)

    def test_missing_exp_rejected(self):
        token = _forge({"sub": ACCESS_TOKEN_SUBJECT, "userId": "user-1"}, _settings.access_token_secret)
        with pytest.raises(TokenInvalid):
            decode_access_token(token)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer x.y.z"])
    def test_malformed_rejected(self, garbage):
        with pytest.raises(TokenInvalid):
            decode_access_token(garbage)


class TestRefreshTokens:
    def test_claims(self):
        claims = decode_refresh_token(create_refresh_token("user-2"))
        assert claims["sub"] == REFRESH_TOKEN_SUBJECT
        assert claims["userId"] == "user-2"
        assert claims["exp"] - claims["iat"] == _settings.refresh_token_expire_seconds

    def test_access_token_is_not_a_refresh_token(self):
        with pytest.raises(TokenInvalid):
            decode_refresh_token(create_access_token("user-2"))

    def test_expired_raises_token_expired(self):
        now = int(time.time())
        token = _forge(
            {"sub": REFRESH_TOKEN_SUBJECT, "userId": "user-2", "iat": now - 120, "exp": now - 1},
            _settings.refresh_token_secret,
        )
        with pytest.raises(TokenExpired):
            decode_refresh_token(token)
