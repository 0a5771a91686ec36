"""
auth/errors.py -- Error taxonomy for authentication and authorization.

Every error carries the HTTP status it maps to and a stable machine-readable
code. The API layer renders them all through a single exception handler, so
route handlers and dependencies simply raise.

Layer rule: no imports from api/ or core/. Nothing here knows about FastAPI.
"""

from __future__ import annotations


class AuthGateError(Exception):
    """Base class for all expected (non-500) failures."""

    status_code: int = 400
    code: str = "bad_request"
    default_message: str = "Bad request."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthGateError):
    status_code = 422
    code = "validation_error"
    default_message = "Request validation failed."


class ConflictError(AuthGateError):
    status_code = 409
    code = "conflict"
    default_message = "Email already exists."


class InvalidCredentials(AuthGateError):
    """Wrong email or wrong password.

    The message is identical for both cases so a caller cannot probe which
    emails are registered.
    """

    status_code = 401
    code = "bad_credentials"
    default_message = "Email or password is invalid."


class NotFound(AuthGateError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class Forbidden(AuthGateError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied."


# ---------------------------------------------------------------------------
# Token errors -- all 401
# ---------------------------------------------------------------------------


class TokenError(AuthGateError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class MissingToken(TokenError):
    code = "missing_token"
    default_message = "Token not found."


class TokenInvalid(TokenError):
    """Bad signature, malformed token, wrong purpose, or unknown to the ledger.

    A refresh token that was already rotated raises this exact error too --
    replay and forgery must be indistinguishable to the caller.
    """

    code = "token_invalid"
    default_message = "Token invalid."


class TokenExpired(TokenError):
    code = "token_expired"
    default_message = "Token expired."


class TokenExpiredOrInvalid(TokenError):
    """Raised by the authentication gate for any verification failure."""

    code = "token_expired_or_invalid"
    default_message = "Access token invalid or expired."


class TokenRevoked(TokenError):
    code = "token_revoked"
    default_message = "Access token revoked."
