# backend/inventory_api/services/products_service.py
"""
Product catalog service.

- create_product enforces SKU uniqueness among ACTIVE products (the partial
  unique index catches the concurrent-create race and is reported the same way)
- other integrity failures (CHECK constraints) surface as StorageError
- update_product applies only the keys present in the patch
- quantity is never written here directly: a quantity in an update patch is
  booked through the stock ledger in the same unit of work
- delete_product is a soft delete (lifecycle_state=DELETED)
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Product
from ..models.inventory import PRODUCT_ACTIVE, PRODUCT_DELETED, TRANSACTION_IN, TRANSACTION_OUT
from ..repositories import products as product_repo
from ..repositories.products import ProductFilter
from ..time_utils import utcnow
from ..validation import clamp_pagination
from .concurrency import atomic
from .ledger_service import _adjust_stock_inner

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"sku", "name", "description", "price"}

QUANTITY_UPDATE_NOTE = "Quantity set via product update"

SKU_INDEX_NAME = "uq_products_sku_active"


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _duplicate_sku() -> ConflictError:
    return ConflictError("Product with this SKU already exists", code="DUPLICATE_SKU")


def _is_sku_collision(exc: IntegrityError) -> bool:
    # PostgreSQL names the index; SQLite names the column
    message = str(exc.orig)
    return SKU_INDEX_NAME in message or "products.sku" in message


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Initial quantity (default 0) is the product's opening balance; every
    later change goes through the ledger.

    Raises:
        ConflictError: an ACTIVE product already uses the SKU
    """
    sku = patch["sku"]

    with atomic():
        if product_repo.get_active_by_sku(sku) is not None:
            raise _duplicate_sku()

        p = Product(
            quantity=patch.get("quantity") or 0,
            lifecycle_state=PRODUCT_ACTIVE,
        )
        apply_product_patch(p, patch)

        try:
            product_repo.add(p)
        except IntegrityError as exc:
            if not _is_sku_collision(exc):
                raise
            raise _duplicate_sku() from exc
        product_id = p.id

    logger.info("Created product %s sku=%s", product_id, sku)
    return get_product(product_id)


def get_product(product_id: int) -> Product:
    p = product_repo.get_active(product_id)
    if p is None:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return p


def get_product_by_sku(sku: str) -> Product:
    p = product_repo.get_active_by_sku(sku)
    if p is None:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return p


def list_products(
    product_filter: ProductFilter | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> list[Product]:
    """
    Filtered, paginated listing of ACTIVE products ordered by id.

    An empty filter is the same as no filter.
    """
    limit, offset = clamp_pagination(limit, offset)
    return product_repo.list_active(product_filter, limit, offset)


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Partial update.

    Only keys present in the patch are touched; explicit zeros (price=0,
    quantity=0) are honored. A quantity key books the difference through the
    ledger so the audit trail still explains the stored quantity.

    Raises:
        NotFoundError: product absent or soft-deleted
        ConflictError: new SKU already used by another ACTIVE product
        InsufficientStockError: never in practice (target quantity >= 0 is validated)
    """
    with atomic():
        p = product_repo.get_active(product_id, lock="quantity" in patch)
        if p is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")

        if "sku" in patch and patch["sku"] != p.sku:
            if product_repo.get_active_by_sku(patch["sku"], exclude_id=p.id) is not None:
                raise _duplicate_sku()

        apply_product_patch(p, patch)
        try:
            db.session.flush()
        except IntegrityError as exc:
            if not _is_sku_collision(exc):
                raise
            raise _duplicate_sku() from exc

        if "quantity" in patch and patch["quantity"] != p.quantity:
            diff = patch["quantity"] - p.quantity
            _adjust_stock_inner(
                product=p,
                quantity=abs(diff),
                transaction_type=TRANSACTION_IN if diff > 0 else TRANSACTION_OUT,
                notes=QUANTITY_UPDATE_NOTE,
            )

    logger.info("Updated product %s fields=%s", product_id, ", ".join(sorted(patch.keys())))
    return get_product(product_id)


def delete_product(*, product_id: int) -> None:
    """
    Soft-delete a product.

    The row stays so historical transactions keep a valid reference; the SKU
    becomes free for a new ACTIVE product.
    """
    with atomic():
        p = product_repo.get_active(product_id)
        if p is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        p.lifecycle_state = PRODUCT_DELETED
        p.deleted_at = utcnow()

    logger.info("Soft-deleted product %s", product_id)
