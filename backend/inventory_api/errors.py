# Overview: Error taxonomy shared by services and routes.

"""
Inventory API error taxonomy.

Every service-layer failure is raised as one of these classes. Each class
carries the HTTP status the API surface maps it to and a default
machine-checkable code; individual raises may pass a more specific code
(e.g. DUPLICATE_SKU, WEAK_PASSWORD).

Response body shape (see register_error_handlers):
    {"error": "<human message>", "code": "<MACHINE_CODE>"}
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class InventoryError(Exception):
    """Base class. Unmapped subclasses render as 500."""

    status_code = 500
    default_code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class NotFoundError(InventoryError):
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(InventoryError):
    """Duplicate SKU / username / email."""

    status_code = 409
    default_code = "CONFLICT"
    default_message = "Conflict"


class ValidationError(InventoryError, ValueError):
    """400-level input problem or business rule violation."""

    status_code = 400
    default_code = "INVALID_ARGUMENT"
    default_message = "Invalid argument"


class InsufficientStockError(InventoryError):
    status_code = 400
    default_code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient quantity for OUT transaction"


class UnauthorizedError(InventoryError):
    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(InventoryError):
    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Access denied"


class StorageError(InventoryError):
    """Infrastructure fault. The message is never shown to clients."""

    status_code = 500
    default_code = "STORAGE_ERROR"
    default_message = "Storage error"


def register_error_handlers(app) -> None:
    @app.errorhandler(InventoryError)
    def handle_inventory_error(exc: InventoryError):
        if exc.status_code >= 500:
            current_app.logger.exception("Request failed with %s", exc.code)
            return jsonify({"error": "Internal server error", "code": exc.code}), exc.status_code
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = exc.name.upper().replace(" ", "_")
        return jsonify({"error": exc.description, "code": code}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
