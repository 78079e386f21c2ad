# Overview: Flask API routes for stock transactions; parses input and returns JSON responses.

# backend/inventory_api/routes/transactions.py
"""
Stock transaction routes.

POST /transactions is the only HTTP path that adjusts stock directly. The
quantity change and the transaction record are written in one unit of work;
an OUT larger than on-hand is rejected with 400 INSUFFICIENT_STOCK.
"""
from flask import Blueprint, request

from ..decorators import authenticated, guarded
from ..models import Transaction
from ..services import ledger_service
from ..validation import (
    ModelValidationPolicy,
    clamp_pagination,
    enforce_rules_transaction,
    validate_payload,
)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "transaction_type", "notes"},
    required_on_create={"product_id", "quantity", "transaction_type"},
)

transactions_bp = Blueprint("transactions", __name__, url_prefix="/transactions")


@transactions_bp.post("")
@guarded(authenticated)
def create_transaction_route(claims):
    payload = request.get_json(silent=True)

    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)
    enforce_rules_transaction(patch)

    tx = ledger_service.adjust_stock(
        product_id=patch["product_id"],
        quantity=patch["quantity"],
        transaction_type=patch["transaction_type"],
        notes=patch.get("notes") or None,
    )
    return tx.to_dict(), 201


@transactions_bp.get("")
@guarded(authenticated)
def list_transactions_route(claims):
    limit, offset = clamp_pagination(
        request.args.get("limit", type=int),
        request.args.get("offset", type=int),
    )
    transactions = ledger_service.list_transactions(limit=limit, offset=offset)
    return {
        "transactions": [t.to_dict() for t in transactions],
        "limit": limit,
        "offset": offset,
    }


@transactions_bp.get("/<int:transaction_id>")
@guarded(authenticated)
def get_transaction_route(transaction_id: int, claims):
    return ledger_service.get_transaction(transaction_id).to_dict()
