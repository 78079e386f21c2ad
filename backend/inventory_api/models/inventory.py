from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..errors import InventoryError
from ..time_utils import utcnow, to_utc_z

PRODUCT_ACTIVE = "ACTIVE"
PRODUCT_DELETED = "DELETED"

TRANSACTION_IN = "IN"
TRANSACTION_OUT = "OUT"
TRANSACTION_TYPES = (TRANSACTION_IN, TRANSACTION_OUT)


class Product(db.Model):
    """
    Product master data.

    QUANTITY: on-hand quantity is stored on the row but is ledger-controlled.
    Only ledger_service writes it, always together with a Transaction row.

    SOFT DELETE: lifecycle_state is ACTIVE or DELETED. Deleted products keep
    their row so historical transactions never dangle.

    SKU: unique among ACTIVE products. The partial unique index is the
    authoritative guard; the service-level check only gives a nicer error.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index(
            "uq_products_sku_active",
            "sku",
            unique=True,
            sqlite_where=db.text("lifecycle_state = 'ACTIVE'"),
            postgresql_where=db.text("lifecycle_state = 'ACTIVE'"),
        ),
        db.Index("ix_products_name", "name"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonnegative"),
        db.CheckConstraint("price >= 0", name="ck_products_price_nonnegative"),
        db.CheckConstraint(
            "lifecycle_state IN ('ACTIVE', 'DELETED')", name="ck_products_lifecycle_state"
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(100), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    lifecycle_state = db.Column(
        db.String(16), nullable=False, default=PRODUCT_ACTIVE, server_default=PRODUCT_ACTIVE, index=True
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == PRODUCT_ACTIVE

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price": str(self.price) if self.price is not None else None,
            "quantity": self.quantity,
            "lifecycle_state": self.lifecycle_state,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Transaction(db.Model):
    """
    Ledger entry: one immutable stock adjustment.

    quantity is always positive; direction lives in transaction_type.
    Rows are written only by ledger_service, inside the same unit of work
    that changes Product.quantity.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_product_created", "product_id", "created_at"),
        db.CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
        db.CheckConstraint("transaction_type IN ('IN', 'OUT')", name="ck_transactions_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    transaction_type = db.Column(db.String(10), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product", lazy="joined")

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.transaction_type == TRANSACTION_IN else -self.quantity

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} product_id={self.product_id} {self.transaction_type} {self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.to_dict() if self.product is not None else None,
            "quantity": self.quantity,
            "transaction_type": self.transaction_type,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


# Ledger entries are append-only at the ORM level.

@event.listens_for(Transaction, "before_update")
def prevent_transaction_update(mapper, connection, target):
    raise InventoryError(
        f"Transaction {target.id} is immutable and cannot be modified",
        code="IMMUTABLE_RECORD",
    )


@event.listens_for(Transaction, "before_delete")
def prevent_transaction_delete(mapper, connection, target):
    raise InventoryError(
        f"Transaction {target.id} is immutable and cannot be deleted",
        code="IMMUTABLE_RECORD",
    )
