# Overview: Flask API routes for user accounts; profile, password and admin management.

# backend/inventory_api/routes/users.py
"""
User account routes.

SECURITY:
- /users/profile and /users/change-password act on the caller only
- GET/PUT /users/<id> require the owner or an admin
- role changes are admin-only (403 for everyone else)
- listing and deletion are admin-only; admins cannot delete themselves
"""
from flask import Blueprint, jsonify, request

from ..decorators import admin_only, authenticated, guarded, owner_or_admin
from ..errors import ForbiddenError, ValidationError
from ..services import auth_service
from ..validation import clamp_pagination, validate_email, validate_phone

users_bp = Blueprint("users", __name__, url_prefix="/users")

PROFILE_FIELDS = {"email", "phone", "role"}


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def _optional_string(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


@users_bp.get("/profile")
@guarded(authenticated)
def profile_route(claims):
    return {"user": auth_service.get_user(claims.user_id).to_dict()}


@users_bp.post("/change-password")
@guarded(authenticated)
def change_password_route(claims):
    data = _json_body()
    old_password = data.get("old_password")
    new_password = data.get("new_password")

    if not isinstance(old_password, str) or not isinstance(new_password, str):
        raise ValidationError("old_password and new_password are required")

    auth_service.change_password(claims.user_id, old_password, new_password)
    return {"message": "Password changed successfully"}


@users_bp.get("")
@guarded(authenticated, admin_only)
def list_users_route(claims):
    limit, offset = clamp_pagination(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
    )
    users = auth_service.list_users(limit=limit, offset=offset)
    return {"users": [u.to_dict() for u in users], "limit": limit, "offset": offset}


@users_bp.get("/<int:user_id>")
@guarded(authenticated, owner_or_admin("user_id"))
def get_user_route(user_id: int, claims):
    return {"user": auth_service.get_user(user_id).to_dict()}


@users_bp.put("/<int:user_id>")
@guarded(authenticated, owner_or_admin("user_id"))
def update_user_route(user_id: int, claims):
    """
    Update email / phone / role. Only admins may send `role`.
    """
    data = _json_body()

    unknown = sorted(set(data) - PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    role = _optional_string(data, "role")
    if role is not None and not auth_service.is_admin(claims):
        raise ForbiddenError("Only admins can change roles")

    email = _optional_string(data, "email")
    if email is not None:
        email = validate_email(email)
    phone = _optional_string(data, "phone")
    if phone is not None:
        phone = validate_phone(phone)
    elif data.get("phone") == "":
        # Explicit empty string clears the phone number
        phone = ""

    user = auth_service.update_profile(user_id, email=email, phone=phone, role=role)
    return {"user": user.to_dict()}


@users_bp.delete("/<int:user_id>")
@guarded(authenticated, admin_only)
def delete_user_route(user_id: int, claims):
    auth_service.delete_user(user_id, actor_user_id=claims.user_id)
    return jsonify({"ok": True}), 200
