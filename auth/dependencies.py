"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and authorization.

Two stages, each usable on its own:

  1. get_current_principal() -- the authentication gate. Reads the access
     token from the Authorization header and walks it through, in order:
       missing header          -> MissingToken
       in revocation ledger    -> TokenRevoked
       bad signature / expired -> TokenExpiredOrInvalid
     and otherwise returns a Principal (also stored on request.state).

     The revocation check runs BEFORE signature verification so a revoked
     token that still carries a valid signature can never authenticate.

  2. require_roles(*roles) -- the authorization check. Consumes the Principal,
     loads the user and raises Forbidden if the role is not allowed. A user
     that no longer exists is also Forbidden -- this path must not reveal
     whether an account exists.

Errors are raised as auth.errors classes; api/main.py renders them.

Layer rule: auth/dependencies.py may import from fastapi (for Depends/Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Request

from auth.errors import Forbidden, MissingToken, TokenError, TokenExpiredOrInvalid, TokenRevoked
from auth.ledger import RevocationLedger
from auth.models import Principal, Role, User
from auth.store import UserStore
from auth.tokens import decode_access_token

logger = logging.getLogger("authgate.auth")

_BEARER_SCHEME = "Bearer"


def extract_access_token(request: Request) -> str | None:
    """Return the access token from the Authorization header, or None.

    The header carries the raw signed string. A "Bearer " scheme prefix is
    tolerated and stripped so standard HTTP clients work unchanged.
    """
    value = request.headers.get("Authorization", "").strip()
    scheme, _, rest = value.partition(" ")
    if scheme == _BEARER_SCHEME:
        value = rest.strip()
    return value or None


def get_current_principal(request: Request) -> Principal:
    """Authenticate the request. Raises a TokenError subclass (HTTP 401) on failure.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(principal: Principal = Depends(get_current_principal)): ...
    """
    token = extract_access_token(request)
    if token is None:
        raise MissingToken("Access token not found.")

    revocations: RevocationLedger = request.app.state.revocation_ledger
    if revocations.is_revoked(token):
        raise TokenRevoked()

    try:
        claims = decode_access_token(token)
    except TokenError as exc:
        raise TokenExpiredOrInvalid() from exc

    principal = Principal(user_id=claims["userId"], token=token, exp=int(claims["exp"]))
    request.state.principal = principal
    return principal


def require_roles(*roles: Role) -> Callable[..., User]:
    """Build a dependency that admits only users holding one of roles.

    Use as a FastAPI dependency:
        @router.get("/admin")
        async def route(user: User = Depends(require_roles(Role.admin))): ...
    """
    allowed = frozenset(Role(r) for r in roles)

    def _authorize(request: Request, principal: Principal = Depends(get_current_principal)) -> User:
        user_store: UserStore = request.app.state.user_store
        user = user_store.get_by_id(principal.user_id)
        if user is None or user.role not in allowed:
            logger.warning("Denied user %s (allowed roles: %s)", principal.user_id, sorted(r.value for r in allowed))
            raise Forbidden()
        return user

    return _authorize
