# Overview: Ledger entry access. Insert and read only; entries are immutable.

from __future__ import annotations

from sqlalchemy import case, func

from ..extensions import db
from ..models import Transaction
from ..models.inventory import TRANSACTION_IN, TRANSACTION_OUT


def add(*, product_id: int, quantity: int, transaction_type: str, notes: str | None) -> Transaction:
    tx = Transaction(
        product_id=product_id,
        quantity=quantity,
        transaction_type=transaction_type,
        notes=notes,
    )
    db.session.add(tx)
    db.session.flush()
    return tx


def get(transaction_id: int) -> Transaction | None:
    return db.session.get(Transaction, transaction_id)


def _newest_first(query):
    return query.order_by(Transaction.created_at.desc(), Transaction.id.desc())


def list_all(limit: int, offset: int) -> list[Transaction]:
    query = _newest_first(db.session.query(Transaction))
    return query.offset(offset).limit(limit).all()


def list_for_product(product_id: int, limit: int, offset: int) -> list[Transaction]:
    query = _newest_first(db.session.query(Transaction).filter(Transaction.product_id == product_id))
    return query.offset(offset).limit(limit).all()


def totals_for_product(product_id: int) -> tuple[int, int, int]:
    """(total_in, total_out, entry_count) over the product's full history."""
    row = db.session.query(
        func.coalesce(
            func.sum(case((Transaction.transaction_type == TRANSACTION_IN, Transaction.quantity), else_=0)),
            0,
        ).label("total_in"),
        func.coalesce(
            func.sum(case((Transaction.transaction_type == TRANSACTION_OUT, Transaction.quantity), else_=0)),
            0,
        ).label("total_out"),
        func.count(Transaction.id).label("entries"),
    ).filter(Transaction.product_id == product_id).one()
    return int(row.total_in or 0), int(row.total_out or 0), int(row.entries or 0)
