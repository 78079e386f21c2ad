# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/inventory_api/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Password strength validation on registration
- Uniform error for unknown user / wrong password
- Stateless bearer tokens (signed, expiring)
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import ValidationError
from ..models.auth import ROLE_USER
from ..services import auth_service
from ..validation import validate_email, validate_phone, validate_username

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def _string_field(data: dict, key: str, *, required: bool = True) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


@auth_bp.post("/register")
def register_route():
    """
    Self-registration.

    Body: username, password, email, phone (optional), role (optional, default "user").
    """
    data = _json_body()

    username = validate_username(_string_field(data, "username"))
    email = validate_email(_string_field(data, "email"))
    password = _string_field(data, "password")
    phone = _string_field(data, "phone", required=False)
    if phone is not None:
        phone = validate_phone(phone)
    role = _string_field(data, "role", required=False) or ROLE_USER

    user = auth_service.register_user(
        username=username,
        password=password,
        email=email,
        phone=phone,
        role=role,
    )
    current_app.logger.info("User registered via API: %s", user.username)

    return jsonify({"user": user.to_dict(), "message": "Registration successful"}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a bearer token.

    Token must be included as `Authorization: Bearer <token>` on protected routes.
    """
    data = _json_body()
    username = _string_field(data, "username")
    password = _string_field(data, "password")

    token, user = auth_service.login(username, password)

    return jsonify({
        "token": token,
        "user": user.to_dict(),
        "message": "Login successful",
    }), 200
