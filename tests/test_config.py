"""Unit tests for core/config.py -- Settings validation rules.

Covers:
- Debug mode auto-generates missing signing secrets
- Production mode refuses to start without secrets
- Short secrets and identical access/refresh secrets are rejected
- Default token lifetimes (minutes-scale access, days-scale refresh)
"""

import pytest

from core.config import Settings

_ACCESS = "a" * 32
_REFRESH = "r" * 32


def test_debug_generates_distinct_secrets():
    s = Settings(_env_file=None, debug=True, access_token_secret="", refresh_token_secret="")
    assert len(s.access_token_secret) >= 32
    assert len(s.refresh_token_secret) >= 32
    assert s.access_token_secret != s.refresh_token_secret


def test_production_requires_secrets():
    with pytest.raises(ValueError, match="ACCESS_TOKEN_SECRET"):
        Settings(_env_file=None, debug=False, access_token_secret="", refresh_token_secret=_REFRESH)


def test_short_secret_rejected():
    with pytest.raises(ValueError, match="at least 32"):
        Settings(_env_file=None, debug=True, access_token_secret="short", refresh_token_secret=_REFRESH)


def test_identical_secrets_rejected():
    with pytest.raises(ValueError, match="must be different"):
        Settings(_env_file=None, debug=False, access_token_secret=_ACCESS, refresh_token_secret=_ACCESS)


def test_explicit_secrets_kept():
    s = Settings(_env_file=None, debug=False, access_token_secret=_ACCESS, refresh_token_secret=_REFRESH)
    assert s.access_token_secret == _ACCESS
    assert s.refresh_token_secret == _REFRESH


def test_default_lifetimes():
    s = Settings(_env_file=None, debug=True)
    assert s.access_token_expire_seconds == 30 * 60
    assert s.refresh_token_expire_seconds == 7 * 24 * 60 * 60


def test_non_positive_lifetime_rejected():
    with pytest.raises(ValueError, match="positive"):
        Settings(_env_file=None, debug=True, access_token_expire_seconds=0)


def test_cors_origin_list_splits_and_strips():
    s = Settings(_env_file=None, debug=True, cors_origins="http://a.test, http://b.test ,")
    assert s.cors_origin_list == ["http://a.test", "http://b.test"]
