# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/inventory_api/routes/products.py
"""
Product catalog routes.

SECURITY:
- Listing and single-product reads are public
- Create / update / history / stock summary require a bearer token
- Delete (soft) is admin-only

Service errors (NotFound, Conflict, Validation, InsufficientStock) propagate
to the error handlers registered in create_app().
"""
from flask import Blueprint, request

from ..decorators import admin_only, authenticated, guarded
from ..models import Product
from ..repositories.products import ProductFilter
from ..services import ledger_service, products_service
from ..validation import (
    ModelValidationPolicy,
    clamp_pagination,
    coerce_decimal,
    enforce_rules_product_create,
    enforce_rules_product_update,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "description", "price", "quantity"},
    required_on_create={"sku", "name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/products")


def _text_arg(name: str) -> str | None:
    # Empty query values mean "no constraint"
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _decimal_arg(name: str):
    raw = _text_arg(name)
    if raw is None:
        return None
    return coerce_decimal(name, raw)


def _page_args() -> tuple[int, int]:
    return clamp_pagination(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
    )


@products_bp.get("")
def list_products_route():
    """
    List ACTIVE products ordered by id.

    Query params (all optional, AND-combined):
    - sku: exact match
    - name: case-insensitive substring
    - min_price / max_price: inclusive bounds
    - limit (default 10, max 100), offset (default 0)
    """
    product_filter = ProductFilter(
        sku=_text_arg("sku"),
        name=_text_arg("name"),
        min_price=_decimal_arg("min_price"),
        max_price=_decimal_arg("max_price"),
    )
    limit, offset = _page_args()

    products = products_service.list_products(product_filter, limit, offset)
    return {
        "products": [p.to_dict() for p in products],
        "limit": limit,
        "offset": offset,
    }


@products_bp.post("")
@guarded(authenticated)
def create_product_route(claims):
    payload = request.get_json(silent=True)

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product_create(patch)  # Handles price validation including max check

    created = products_service.create_product(patch=patch)
    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    return products_service.get_product(product_id).to_dict()


@products_bp.put("/<int:product_id>")
@guarded(authenticated)
def update_product_route(product_id: int, claims):
    """
    Partial update: only fields present in the body are changed.

    A quantity in the body is booked as an IN/OUT ledger entry.
    """
    payload = request.get_json(silent=True)

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product_update(patch)

    updated = products_service.update_product(product_id=product_id, patch=patch)
    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@guarded(authenticated, admin_only)
def delete_product_route(product_id: int, claims):
    products_service.delete_product(product_id=product_id)
    return {"ok": True}, 200


@products_bp.get("/<int:product_id>/transactions")
@guarded(authenticated)
def list_product_transactions_route(product_id: int, claims):
    """Stock history for one product, newest first. Works for soft-deleted products."""
    limit, offset = _page_args()
    transactions = ledger_service.list_product_transactions(
        product_id=product_id, limit=limit, offset=offset
    )
    return {
        "transactions": [t.to_dict() for t in transactions],
        "limit": limit,
        "offset": offset,
    }


@products_bp.get("/<int:product_id>/stock-summary")
@guarded(authenticated)
def stock_summary_route(product_id: int, claims):
    return ledger_service.get_stock_summary(product_id)
