# Overview: Request guards for API routes.

"""
Ordered request guards.

A protected view declares its guards once:

    @products_bp.delete("/<int:product_id>")
    @guarded(authenticated, admin_only)
    def delete_product_route(product_id, claims): ...

Guards run in declaration order; the first denial short-circuits with a JSON
error body and its status. The decoded TokenClaims are handed to the view as
the `claims` keyword argument (identity is never read from flask.g).

Guard signature: guard(claims, view_kwargs) -> GuardResult
`claims` is None when the request carried no valid bearer token.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable

from flask import jsonify, request

from .errors import UnauthorizedError
from .services import auth_service
from .services.token_service import TokenClaims, decode_token


@dataclass(frozen=True)
class GuardResult:
    allowed: bool
    status_code: int = 200
    reason: str | None = None
    code: str | None = None


ALLOW = GuardResult(allowed=True)


def _bearer_claims() -> tuple[TokenClaims | None, UnauthorizedError | None]:
    """Decode the Authorization header. Never raises."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None, UnauthorizedError("Authentication required", code="UNAUTHORIZED")

    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None, UnauthorizedError("Malformed Authorization header", code="INVALID_TOKEN")

    try:
        return decode_token(token.strip()), None
    except UnauthorizedError as e:
        return None, e


def authenticated(claims: TokenClaims | None, view_kwargs: dict) -> GuardResult:
    if claims is None:
        return GuardResult(False, 401, "Authentication required", "UNAUTHORIZED")
    return ALLOW


def admin_only(claims: TokenClaims | None, view_kwargs: dict) -> GuardResult:
    if not auth_service.is_admin(claims):
        return GuardResult(False, 403, "Admin access required", "FORBIDDEN")
    return ALLOW


def owner_or_admin(param: str) -> Callable[[TokenClaims | None, dict], GuardResult]:
    """Allow admins, or the user whose id is in the URL parameter `param`."""
    def guard(claims: TokenClaims | None, view_kwargs: dict) -> GuardResult:
        if not auth_service.is_owner_or_admin(claims, view_kwargs.get(param)):
            return GuardResult(False, 403, "Access denied", "FORBIDDEN")
        return ALLOW

    guard.__name__ = f"owner_or_admin({param})"
    return guard


def guarded(*guards):
    """
    Evaluate `guards` in order before the view runs.

    A 401 from `authenticated` reports the precise token problem (missing,
    malformed, expired, bad signature) rather than the generic reason.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            claims, token_error = _bearer_claims()

            for guard in guards:
                result = guard(claims, kwargs)
                if result.allowed:
                    continue
                if result.status_code == 401 and token_error is not None:
                    return jsonify(token_error.to_dict()), 401
                return jsonify({"error": result.reason, "code": result.code}), result.status_code

            return f(*args, claims=claims, **kwargs)

        return decorated_function

    return decorator
