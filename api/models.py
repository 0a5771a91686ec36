"""
API request and response models for AuthGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

JSON keys are camelCase (accessToken, refreshToken) to match the public
contract; Python attributes stay snake_case via field aliases.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import Role

# Identifiers are trimmed before validation. Passwords are never touched: the
# stored hash must match exactly what the user types at login.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Email = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=320)]

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    Blank name or email counts as missing (min_length=1 after stripping), so
    it is a 422 rather than a stored record. A blank password is rejected by
    register_user().
    """

    name: Name
    email: Email
    password: str = Field(min_length=1, max_length=255)
    role: Optional[Role] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: Email
    password: str = Field(min_length=1, max_length=255)


class RefreshRequest(BaseModel):
    """Request body for POST /api/auth/refresh-token.

    refreshToken is optional and untyped at the schema level: a missing or
    non-string token is an authentication failure (401), not a validation
    failure (422). The route decides which.
    """

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[Any] = Field(default=None, alias="refreshToken")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class RegisterResponse(BaseModel):
    """Response for POST /api/auth/register (201)."""

    model_config = ConfigDict(frozen=True)

    message: str
    id: str


class TokenPairResponse(BaseModel):
    """Response for POST /api/auth/refresh-token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class LoginResponse(TokenPairResponse):
    """Response for POST /api/auth/login: identity plus a fresh token pair."""

    id: str
    name: str
    email: str


class CurrentUserResponse(BaseModel):
    """Response for POST /api/users/current."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
