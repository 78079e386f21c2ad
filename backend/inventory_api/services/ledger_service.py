# Overview: Stock ledger engine; atomic quantity adjustment + transaction recording.

# backend/inventory_api/services/ledger_service.py

from __future__ import annotations

import logging

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..models import Product, Transaction
from ..models.inventory import TRANSACTION_IN, TRANSACTION_TYPES
from ..repositories import products as product_repo
from ..repositories import transactions as transaction_repo
from ..validation import MAX_QUANTITY, check_quantity_ceiling
from .concurrency import atomic

"""
Stock Ledger Invariants (authoritative)

Quantity model:
- Product.quantity is the on-hand quantity. It is written ONLY here, and
  always in the same unit of work as the Transaction row that explains it.
- Transaction.quantity is a positive magnitude; transaction_type carries the
  direction (IN adds, OUT subtracts).

Business invariants:
- On-hand quantity may never go negative. An OUT larger than on-hand is
  rejected and nothing is written.
- On-hand quantity never exceeds MAX_QUANTITY. An IN that would overflow it
  is rejected as invalid input.
- Every successful adjustment produces exactly one Transaction. Summing the
  signed deltas from the product's initial quantity reproduces the stored
  quantity.

Concurrency:
- The product row is locked (SELECT ... FOR UPDATE) for the whole unit.
- The quantity write is a guarded UPDATE (quantity + delta >= 0), so stores
  that ignore FOR UPDATE still cannot be driven negative by a lost update.
- No retries. InsufficientStock is a caller decision, not something to
  retry with a smaller amount.
"""

logger = logging.getLogger(__name__)


def _validate_adjustment(quantity, transaction_type: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    check_quantity_ceiling(quantity)
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("transaction_type must be one of: IN, OUT")


def _adjust_stock_inner(
    *,
    product: Product,
    quantity: int,
    transaction_type: str,
    notes: str | None = None,
) -> Transaction:
    """Core adjustment without opening or committing a unit of work.

    Caller must hold `product` locked inside an atomic() block. Used by both
    adjust_stock() and products_service.update_product().
    """
    delta = quantity if transaction_type == TRANSACTION_IN else -quantity

    if product.quantity + delta < 0:
        logger.warning(
            "Rejected %s of %s for product %s: on-hand is %s",
            transaction_type, quantity, product.id, product.quantity,
        )
        raise InsufficientStockError(
            f"Insufficient quantity for OUT transaction (on hand: {product.quantity}, requested: {quantity})"
        )
    if product.quantity + delta > MAX_QUANTITY:
        raise ValidationError(
            f"quantity would exceed {MAX_QUANTITY} (on hand: {product.quantity}, requested: {quantity})"
        )

    if not product_repo.apply_quantity_delta(product.id, delta, ceiling=MAX_QUANTITY):
        # Row changed under us on a store without real row locks
        if delta > 0:
            raise ValidationError(f"quantity would exceed {MAX_QUANTITY}")
        raise InsufficientStockError()

    tx = transaction_repo.add(
        product_id=product.id,
        quantity=quantity,
        transaction_type=transaction_type,
        notes=notes,
    )

    # Pick up the quantity written by the guarded UPDATE
    product_repo.refresh(product)
    return tx


def adjust_stock(
    *,
    product_id: int,
    quantity: int,
    transaction_type: str,
    notes: str | None = None,
) -> Transaction:
    """
    Apply one IN/OUT adjustment and record it.

    Raises:
        ValidationError: quantity not a positive integer or unknown type
            (checked before any unit of work is opened)
        NotFoundError: product absent or soft-deleted
        InsufficientStockError: OUT would drive quantity below zero
        StorageError: any store fault; the unit is rolled back
    """
    _validate_adjustment(quantity, transaction_type)

    with atomic():
        product = product_repo.get_active(product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")

        tx = _adjust_stock_inner(
            product=product,
            quantity=quantity,
            transaction_type=transaction_type,
            notes=notes,
        )
        new_quantity = product.quantity
        tx_id = tx.id

    logger.info(
        "Stock %s %s on product %s -> quantity %s (transaction %s)",
        transaction_type, quantity, product_id, new_quantity, tx_id,
    )
    return get_transaction(tx_id)


def get_transaction(transaction_id: int) -> Transaction:
    tx = transaction_repo.get(transaction_id)
    if tx is None:
        raise NotFoundError("Transaction not found", code="TRANSACTION_NOT_FOUND")
    return tx


def list_transactions(*, limit: int, offset: int) -> list[Transaction]:
    return transaction_repo.list_all(limit, offset)


def _require_known_product(product_id: int) -> Product:
    # History stays readable after a soft delete
    product = product_repo.get_any(product_id)
    if product is None:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return product


def list_product_transactions(*, product_id: int, limit: int, offset: int) -> list[Transaction]:
    _require_known_product(product_id)
    return transaction_repo.list_for_product(product_id, limit, offset)


def get_stock_summary(product_id: int) -> dict:
    """
    Audit view of a product's ledger.

    initial_quantity is what the product held before any recorded adjustment:
    quantity - (total_in - total_out).
    """
    product = _require_known_product(product_id)
    total_in, total_out, entries = transaction_repo.totals_for_product(product_id)
    return {
        "product_id": product.id,
        "sku": product.sku,
        "quantity": product.quantity,
        "total_in": total_in,
        "total_out": total_out,
        "net_change": total_in - total_out,
        "initial_quantity": product.quantity - (total_in - total_out),
        "transaction_count": entries,
    }
