# Overview: Bearer token issuance and verification.

"""
Signed bearer tokens (JWT, HS256 by default).

Tokens are self-contained: the claims carry user id, username and role, so
a request can be authorized without a database lookup. Lifetime, secret and
algorithm come from app config (JWT_EXPIRES_HOURS, JWT_SECRET_KEY,
JWT_ALGORITHM).

Rejected tokens (malformed, expired, bad signature, missing claims, unknown
role) raise UnauthorizedError; the HTTP layer turns that into a 401.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..errors import UnauthorizedError
from ..models import User
from ..models.auth import ROLE_ADMIN, VALID_ROLES


@dataclass(frozen=True)
class TokenClaims:
    """
    Identity decoded from a verified token.

    Passed explicitly to every handler/service that needs the caller's
    identity.
    """
    user_id: int
    username: str
    role: str
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _secret() -> str:
    return current_app.config["JWT_SECRET_KEY"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def issue_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=current_app.config.get("JWT_EXPIRES_HOURS", 24))
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "iat": now,
        "exp": expires_at,
    }
    return jwt.encode(payload, _secret(), algorithm=_algorithm())


def decode_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[_algorithm()],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    try:
        user_id = int(payload["sub"])
        username = str(payload["username"])
        role = payload["role"]
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    if role not in VALID_ROLES:
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    return TokenClaims(user_id=user_id, username=username, role=role, expires_at=expires_at)
