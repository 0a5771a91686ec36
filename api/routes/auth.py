"""
api/routes/auth.py -- Registration, login, token refresh and logout.

Routes:
  POST /api/auth/register       -- create a user; 201 {message, id}
  POST /api/auth/login          -- email/password login; 200 identity + token pair
  POST /api/auth/refresh-token  -- rotate a refresh token; 200 new token pair
  GET  /api/auth/logout         -- end all sessions of the caller; 204

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login and refresh responses carry Cache-Control: no-store so tokens are
  never cached by intermediaries.
  Logout removes every refresh token of the user and records the presented
  access token in the revocation ledger until its natural expiry.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, RefreshRequest, RegisterRequest, RegisterResponse, TokenPairResponse
from auth.credentials import authenticate_user, register_user
from auth.dependencies import get_current_principal
from auth.errors import InvalidCredentials, MissingToken, TokenInvalid
from auth.ledger import RefreshTokenLedger, RevocationLedger
from auth.models import Principal
from auth.store import UserStore

logger = logging.getLogger("authgate.api.auth")

# Auth policy:
# - POST /api/auth/register:       public
# - POST /api/auth/login:          public
# - POST /api/auth/refresh-token:  public -- the refresh token in the body is the credential
# - GET  /api/auth/logout:         requires access token (get_current_principal)
router = APIRouter()


def _no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Register a new user. Role defaults to member when omitted."""
    user_store: UserStore = request.app.state.user_store
    user_id = register_user(user_store, body.name, body.email, body.password, body.role)
    return RegisterResponse(message="User registered successfully", id=user_id)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return identity and a token pair.

    Wrong email and wrong password produce the same 401 body.
    """
    user_store: UserStore = request.app.state.user_store
    ledger: RefreshTokenLedger = request.app.state.refresh_ledger
    try:
        user = authenticate_user(user_store, body.email, body.password)
    except InvalidCredentials:
        logger.warning("Failed login attempt")
        raise

    pair = ledger.issue_pair(user.id)
    logger.info("User %s logged in", user.id)
    return _no_store(
        JSONResponse(
            status_code=200,
            content=LoginResponse(
                id=user.id,
                name=user.name,
                email=user.email,
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
            ).model_dump(by_alias=True),
        )
    )


@router.post("/auth/refresh-token", response_model=TokenPairResponse)
def refresh_token(request: Request, body: Optional[RefreshRequest] = None) -> JSONResponse:
    """Exchange a refresh token for a new access/refresh pair.

    The presented refresh token is consumed: presenting it again fails with
    the same 401 as a forged token.
    """
    token = body.refresh_token if body is not None else None
    if token is None or token == "":
        raise MissingToken("Refresh token not found.")
    if not isinstance(token, str):
        raise TokenInvalid()

    ledger: RefreshTokenLedger = request.app.state.refresh_ledger
    pair = ledger.rotate(token)
    return _no_store(
        JSONResponse(
            status_code=200,
            content=TokenPairResponse(
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
            ).model_dump(by_alias=True),
        )
    )


@router.get("/auth/logout", status_code=204)
def logout(request: Request, principal: Principal = Depends(get_current_principal)) -> Response:
    """End every refresh session of the caller and revoke the presented access token."""
    refresh_ledger: RefreshTokenLedger = request.app.state.refresh_ledger
    revocations: RevocationLedger = request.app.state.revocation_ledger

    refresh_ledger.revoke_all(principal.user_id)
    revocations.revoke(principal.token, principal.user_id, principal.exp)
    logger.info("User %s logged out", principal.user_id)
    return Response(status_code=204)
