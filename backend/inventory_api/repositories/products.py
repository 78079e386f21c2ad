# Overview: Product row access: lookups, filtered listing, guarded quantity writes.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update

from ..extensions import db
from ..models import Product
from ..models.inventory import PRODUCT_ACTIVE
from ..time_utils import utcnow


@dataclass(frozen=True)
class ProductFilter:
    """
    Optional list predicates, AND-combined. None means "no constraint".

    - sku: exact match
    - name: case-insensitive substring
    - min_price / max_price: inclusive bounds
    """
    sku: str | None = None
    name: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None

    def is_empty(self) -> bool:
        return self.sku is None and self.name is None and self.min_price is None and self.max_price is None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filter_clauses(product_filter: ProductFilter | None) -> list:
    if product_filter is None or product_filter.is_empty():
        return []

    clauses = []
    if product_filter.sku is not None:
        clauses.append(Product.sku == product_filter.sku)
    if product_filter.name is not None:
        pattern = f"%{_escape_like(product_filter.name)}%"
        clauses.append(Product.name.ilike(pattern, escape="\\"))
    if product_filter.min_price is not None:
        clauses.append(Product.price >= product_filter.min_price)
    if product_filter.max_price is not None:
        clauses.append(Product.price <= product_filter.max_price)
    return clauses


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    apply_quantity_delta is guarded so SQLite stays safe too.
    """
    return query.with_for_update()


def get_active(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter(
        Product.id == product_id,
        Product.lifecycle_state == PRODUCT_ACTIVE,
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_any(product_id: int) -> Product | None:
    """Includes soft-deleted rows (for history lookups)."""
    return db.session.get(Product, product_id)


def get_active_by_sku(sku: str, *, exclude_id: int | None = None) -> Product | None:
    query = db.session.query(Product).filter(
        Product.sku == sku,
        Product.lifecycle_state == PRODUCT_ACTIVE,
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first()


def list_active(product_filter: ProductFilter | None, limit: int, offset: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.lifecycle_state == PRODUCT_ACTIVE, *build_filter_clauses(product_filter))
        .order_by(Product.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def add(product: Product) -> Product:
    db.session.add(product)
    db.session.flush()
    return product


def apply_quantity_delta(product_id: int, delta: int, *, ceiling: int) -> bool:
    """
    UPDATE products SET quantity = quantity + :delta
     WHERE id = :id AND quantity + :delta BETWEEN 0 AND :ceiling

    The WHERE clause re-checks both bounds against the committed row, so
    the write is safe even where FOR UPDATE is a no-op. Returns False when no
    row qualified.
    """
    stmt = (
        update(Product)
        .where(
            Product.id == product_id,
            Product.lifecycle_state == PRODUCT_ACTIVE,
            Product.quantity + delta >= 0,
            Product.quantity + delta <= ceiling,
        )
        .values(quantity=Product.quantity + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1


def refresh(product: Product) -> None:
    db.session.refresh(product)
