"""
api/routes/users.py -- Endpoints about the authenticated user.

Routes:
  POST /api/users/current -- identity of the caller (requires access token)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import CurrentUserResponse
from auth.credentials import find_user
from auth.dependencies import get_current_principal
from auth.errors import NotFound, TokenInvalid
from auth.models import Principal
from auth.store import UserStore

router = APIRouter()


@router.post("/users/current", response_model=CurrentUserResponse)
def current_user(request: Request, principal: Principal = Depends(get_current_principal)) -> CurrentUserResponse:
    """Return id, name and email of the caller.

    A valid token whose user record is gone is treated as unauthenticated.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = find_user(user_store, principal.user_id)
    except NotFound as exc:
        raise TokenInvalid("Access token subject no longer exists.") from exc
    return CurrentUserResponse(id=user.id, name=user.name, email=user.email)
