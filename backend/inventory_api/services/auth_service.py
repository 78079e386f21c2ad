# Overview: Service-layer operations for auth; registration, login, profile and password rules.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing and
issues signed bearer tokens on login.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Registration conflicts return one generic error (no hint whether the
  username or the email was taken)
- Login failures return one uniform error for unknown user and wrong password
- Role changes are admin-only; the route enforces that before calling in
"""

from __future__ import annotations

import logging

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_USER
from ..repositories import users as user_repo
from ..time_utils import utcnow
from ..validation import clamp_pagination, validate_password_strength, validate_role
from .concurrency import atomic
from .token_service import TokenClaims, issue_token

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


def _registration_failed() -> ConflictError:
    return ConflictError("Registration failed: username or email unavailable", code="REGISTRATION_FAILED")


def register_user(
    *,
    username: str,
    password: str,
    email: str,
    phone: str | None = None,
    role: str = ROLE_USER,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: INVALID_ROLE or WEAK_PASSWORD
        ConflictError: REGISTRATION_FAILED if username or email is taken
    """
    validate_role(role)
    validate_password_strength(password)

    with atomic():
        if user_repo.username_or_email_taken(username, email):
            raise _registration_failed()

        user = User(
            username=username,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            role=role,
        )
        try:
            user_repo.add(user)
        except IntegrityError as exc:
            # Concurrent registration won the unique constraint
            raise _registration_failed() from exc
        user_id = user.id

    logger.info("Registered user %s (%s) role=%s", user_id, username, role)
    return get_user(user_id)


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = user_repo.get_by_username(username)
    if user is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    with atomic():
        user.last_login_at = utcnow()
    return user


def login(username: str, password: str) -> tuple[str, User]:
    """Return (token, user); one uniform error for every credential failure."""
    user = authenticate(username, password)
    if user is None:
        logger.warning("Failed login for username=%s", username)
        raise UnauthorizedError("Invalid username or password", code="INVALID_CREDENTIALS")
    return issue_token(user), user


def get_user(user_id: int) -> User:
    user = user_repo.get(user_id)
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    return user


def list_users(*, limit: int | None = None, offset: int | None = None) -> list[User]:
    limit, offset = clamp_pagination(limit, offset)
    return user_repo.list_users(limit, offset)


def update_profile(
    user_id: int,
    *,
    email: str | None = None,
    phone: str | None = None,
    role: str | None = None,
) -> User:
    """
    Update email/phone/role. None means "leave unchanged"; phone="" clears
    the stored phone number.

    Raises:
        NotFoundError: no such user
        ConflictError: EMAIL_IN_USE when another user owns the email
        ValidationError: INVALID_ROLE
    """
    if role is not None:
        validate_role(role)

    with atomic():
        user = get_user(user_id)

        if email is not None and email != user.email:
            owner = user_repo.get_by_email(email)
            if owner is not None and owner.id != user.id:
                raise ConflictError("Email already in use", code="EMAIL_IN_USE")
            user.email = email
        if phone is not None:
            user.phone = phone or None
        if role is not None:
            user.role = role

        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Email already in use", code="EMAIL_IN_USE") from exc

    return get_user(user_id)


def change_password(user_id: int, old_password: str, new_password: str) -> None:
    """
    Raises ValidationError with INCORRECT_PASSWORD, WEAK_PASSWORD or
    SAME_PASSWORD, checked in that order.
    """
    with atomic():
        user = get_user(user_id)

        if not verify_password(old_password, user.password_hash):
            raise ValidationError("Current password is incorrect", code="INCORRECT_PASSWORD")
        validate_password_strength(new_password)
        if new_password == old_password:
            raise ValidationError("New password must differ from the current password", code="SAME_PASSWORD")

        user.password_hash = hash_password(new_password)

    logger.info("Password changed for user %s", user_id)


def delete_user(user_id: int, *, actor_user_id: int) -> None:
    """Hard delete. Admins cannot delete their own account."""
    if user_id == actor_user_id:
        raise ValidationError("Cannot delete your own account", code="SELF_DELETION")

    with atomic():
        user_repo.delete(get_user(user_id))

    logger.info("User %s deleted by %s", user_id, actor_user_id)


def is_admin(claims: TokenClaims | None) -> bool:
    return claims is not None and claims.is_admin


def is_owner_or_admin(claims: TokenClaims | None, resource_user_id: int) -> bool:
    if claims is None:
        return False
    return claims.is_admin or claims.user_id == resource_user_id
