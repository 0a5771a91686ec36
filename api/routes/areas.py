"""
api/routes/areas.py -- Role-gated areas.

Routes:
  GET /api/admin      -- admin only
  GET /api/moderator  -- admin or moderator

Both run the two-stage pipeline: get_current_principal (401 on failure) then
require_roles (403 on failure).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MessageResponse
from auth.dependencies import require_roles
from auth.models import Role, User

router = APIRouter()


@router.get("/admin", response_model=MessageResponse)
async def admin_area(user: User = Depends(require_roles(Role.admin))) -> MessageResponse:
    return MessageResponse(message="Only admins can access this route!")


@router.get("/moderator", response_model=MessageResponse)
async def moderator_area(user: User = Depends(require_roles(Role.admin, Role.moderator))) -> MessageResponse:
    return MessageResponse(message="Only admins and moderators can access this route!")
