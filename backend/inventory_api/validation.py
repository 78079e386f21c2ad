from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.auth import VALID_ROLES
from .models.inventory import TRANSACTION_TYPES


# Numeric(10, 2) upper bound
MAX_PRICE = Decimal("99999999.99")
CENT = Decimal("0.01")
# Integer column upper bound (32-bit signed on PostgreSQL)
MAX_QUANTITY = 2_147_483_647

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

PASSWORD_MIN_LENGTH = 8
# bcrypt only hashes the first 72 bytes and current releases reject longer input
PASSWORD_MAX_BYTES = 72

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,50}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9+\-\s()]{10,15}$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_decimal(key: str, value: Any) -> Decimal:
    """Accept int, float or numeric string; quantize to cents."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        dec = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return dec.quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(price: Decimal, *, allow_zero: bool) -> None:
    if allow_zero and price < 0:
        raise ValidationError("price must be >= 0")
    if not allow_zero and price <= 0:
        raise ValidationError("price must be greater than 0")
    if price > MAX_PRICE:
        raise ValidationError(f"price cannot exceed {MAX_PRICE}")


def check_quantity_ceiling(quantity: int) -> None:
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")


def enforce_rules_product_create(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch["price"], allow_zero=False)
    if patch.get("quantity") is not None:
        if patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")
        check_quantity_ceiling(patch["quantity"])


def enforce_rules_product_update(patch: dict) -> None:
    # Explicit zeros are legitimate on update (price=0, quantity=0)
    if "price" in patch:
        _check_price(patch["price"], allow_zero=True)
    if "quantity" in patch:
        if patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")
        check_quantity_ceiling(patch["quantity"])


def enforce_rules_transaction(patch: dict) -> None:
    # quantity is a magnitude; direction lives in transaction_type
    if patch["quantity"] <= 0:
        raise ValidationError("quantity must be greater than 0")
    check_quantity_ceiling(patch["quantity"])
    if patch["transaction_type"] not in TRANSACTION_TYPES:
        raise ValidationError("transaction_type must be one of: IN, OUT")


def validate_role(role: str) -> str:
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}", code="INVALID_ROLE")
    return role


def validate_password_strength(password: str) -> None:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            code="WEAK_PASSWORD",
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(
            f"Password must be at most {PASSWORD_MAX_BYTES} bytes long",
            code="WEAK_PASSWORD",
        )


def validate_username(username: str) -> str:
    if not USERNAME_RE.match(username):
        raise ValidationError("username must be 3-50 letters, digits or underscores")
    return username


def validate_email(email: str) -> str:
    email = email.strip()
    if len(email) > 255 or not EMAIL_RE.match(email):
        raise ValidationError("email must be a valid email address")
    return email


def validate_phone(phone: str) -> str:
    phone = phone.strip()
    if not PHONE_RE.match(phone):
        raise ValidationError("phone must be 10-15 digits, spaces or +-() characters")
    return phone


def clamp_pagination(limit: int | None, offset: int | None) -> tuple[int, int]:
    """limit defaults to 10 and is clamped to [1, 100]; offset defaults to 0, floor 0."""
    if limit is None:
        limit = DEFAULT_PAGE_LIMIT
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)
    if offset is None:
        offset = 0
    offset = max(offset, 0)
    return limit, offset
