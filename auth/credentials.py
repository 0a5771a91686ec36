"""
auth/credentials.py -- Credential store operations: register, authenticate, look up.

These functions sit between the routes and UserStore. They own the rules the
store does not: required fields, email uniqueness reported as ConflictError,
password hashing, and timing-equalized authentication.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError, InvalidCredentials, NotFound, ValidationError
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, hash_password, verify_password

logger = logging.getLogger("authgate.auth.credentials")


def register_user(
    store: UserStore,
    name: str,
    email: str,
    password: str,
    role: Role | str | None = None,
) -> str:
    """Create a user and return the generated id.

    Raises:
        ValidationError: name, email or password missing/blank, or an unknown role.
        ConflictError:   a user with this email already exists.
    """
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or not email or not password or not password.strip():
        raise ValidationError("Please fill in all fields (name, email, and password).")
    try:
        resolved_role = Role(role) if role is not None else Role.member
    except ValueError as exc:
        raise ValidationError(f"Unknown role {role!r}.") from exc

    if store.email_exists(email):
        raise ConflictError()

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=resolved_role,
    )
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        # A concurrent registration for the same email won the insert.
        raise ConflictError() from exc
    logger.info("Registered user %s (role=%s)", user_id, resolved_role.value)
    return user_id


def authenticate_user(store: UserStore, email: str, password: str) -> User:
    """Return the User for a valid email/password pair.

    Always runs bcrypt whether or not the email exists, so an unknown email
    and a wrong password cost the same time and raise the same error.

    Raises:
        ValidationError:    email or password missing.
        InvalidCredentials: unknown email or wrong password.
    """
    if not email or not password:
        raise ValidationError("Please fill in all fields (email and password).")
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


def find_user(store: UserStore, user_id: str) -> User:
    """Return the User with this id. Raises NotFound if absent."""
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found.")
    return user
