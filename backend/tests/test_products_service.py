"""
Product catalog service tests.

Covers create/get read mapping, filter composition, partial update semantics,
ledger-booked quantity edits, soft delete and SKU uniqueness.
"""

from decimal import Decimal

import pytest

from inventory_api.errors import ConflictError, NotFoundError, StorageError, ValidationError
from inventory_api.models import Product, Transaction
from inventory_api.repositories import products as product_repo
from inventory_api.repositories.products import ProductFilter
from inventory_api.services import ledger_service, products_service
from inventory_api.services.products_service import QUANTITY_UPDATE_NOTE
from inventory_api.validation import MAX_QUANTITY


class TestCreateAndRead:

    def test_create_then_get_returns_same_fields(self, db_session):
        created = products_service.create_product(patch={
            "sku": "ABC-1",
            "name": "Thing",
            "description": "A thing",
            "price": Decimal("12.50"),
            "quantity": 3,
        })

        fetched = products_service.get_product(created.id)
        assert fetched.sku == "ABC-1"
        assert fetched.name == "Thing"
        assert fetched.description == "A thing"
        assert fetched.price == Decimal("12.50")
        assert fetched.quantity == 3
        assert fetched.is_active

        assert products_service.get_product_by_sku("ABC-1").id == created.id

    def test_quantity_defaults_to_zero(self, db_session):
        created = products_service.create_product(patch={"sku": "Z-1", "name": "Zero", "price": Decimal("1.00")})
        assert created.quantity == 0

    def test_to_dict_serializes_price_as_string(self, db_session, widget):
        data = widget.to_dict()
        assert data["price"] == "9.99"
        assert data["created_at"].endswith("Z")

    def test_missing_product(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            products_service.get_product(12345)
        assert exc.value.code == "PRODUCT_NOT_FOUND"

    def test_missing_sku(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.get_product_by_sku("NOPE")


class TestSkuUniqueness:

    def test_duplicate_sku_rejected(self, db_session, widget):
        with pytest.raises(ConflictError) as exc:
            products_service.create_product(patch={"sku": "WIDGET-1", "name": "Dup", "price": Decimal("1.00")})
        assert exc.value.code == "DUPLICATE_SKU"

    def test_update_to_taken_sku_rejected(self, db_session, widget, catalog):
        with pytest.raises(ConflictError):
            products_service.update_product(product_id=catalog[0].id, patch={"sku": "WIDGET-1"})

    def test_sku_reusable_after_soft_delete(self, db_session, widget):
        products_service.delete_product(product_id=widget.id)
        replacement = products_service.create_product(
            patch={"sku": "WIDGET-1", "name": "Widget v2", "price": Decimal("11.00")}
        )
        assert replacement.id != widget.id
        assert products_service.get_product_by_sku("WIDGET-1").id == replacement.id

    def test_index_race_is_reported_as_duplicate(self, db_session, widget, monkeypatch):
        monkeypatch.setattr(product_repo, "get_active_by_sku", lambda sku, exclude_id=None: None)
        with pytest.raises(ConflictError) as exc:
            products_service.create_product(patch={"sku": "WIDGET-1", "name": "Racer", "price": Decimal("1.00")})
        assert exc.value.code == "DUPLICATE_SKU"

    def test_check_violation_is_not_reported_as_duplicate(self, db_session, widget):
        with pytest.raises(StorageError):
            products_service.update_product(product_id=widget.id, patch={"price": Decimal("-1.00")})
        db_session.expire_all()
        assert db_session.get(Product, widget.id).price == Decimal("9.99")

    def test_check_violation_on_create(self, db_session):
        with pytest.raises(StorageError):
            products_service.create_product(patch={"sku": "NEG-1", "name": "Negative", "price": Decimal("-1.00")})
        assert db_session.query(Product).count() == 0


class TestFilters:

    def _skus(self, product_filter=None, limit=None, offset=None):
        return [p.sku for p in products_service.list_products(product_filter, limit, offset)]

    def test_empty_filter_equals_no_filter(self, db_session, catalog):
        assert self._skus(ProductFilter()) == self._skus(None) == [p.sku for p in catalog]

    def test_exact_sku(self, db_session, catalog):
        assert self._skus(ProductFilter(sku="GADGET-2")) == ["GADGET-2"]
        assert self._skus(ProductFilter(sku="GADGET")) == []

    def test_name_is_case_insensitive_substring(self, db_session, catalog):
        assert self._skus(ProductFilter(name="gadget")) == ["GADGET-1", "GADGET-2"]

    def test_name_wildcards_are_literal(self, db_session, catalog):
        assert self._skus(ProductFilter(name="100%")) == ["WIDGET-9"]
        assert self._skus(ProductFilter(name="%")) == ["WIDGET-9"]

    def test_price_bounds_inclusive(self, db_session, catalog):
        assert self._skus(ProductFilter(min_price=Decimal("15.50"), max_price=Decimal("25.00"))) == [
            "GADGET-2",
            "WIDGET-9",
        ]
        assert self._skus(ProductFilter(max_price=Decimal("5.00"))) == ["GADGET-1"]

    def test_predicates_are_and_combined(self, db_session, catalog):
        assert self._skus(ProductFilter(name="gadget", min_price=Decimal("10"))) == ["GADGET-2"]

    def test_pagination_is_clamped(self, db_session, catalog):
        assert len(self._skus(limit=0)) == 1
        assert len(self._skus(limit=1000)) == len(catalog)
        assert self._skus(limit=2, offset=-5) == ["GADGET-1", "GADGET-2"]
        assert self._skus(limit=2, offset=2) == ["WIDGET-9", "TOOL-1"]

    def test_deleted_products_are_hidden(self, db_session, catalog):
        products_service.delete_product(product_id=catalog[0].id)
        assert "GADGET-1" not in self._skus()


class TestPartialUpdate:

    def test_only_present_fields_change(self, db_session, widget):
        updated = products_service.update_product(product_id=widget.id, patch={"name": "Renamed"})
        assert updated.name == "Renamed"
        assert updated.sku == "WIDGET-1"
        assert updated.price == Decimal("9.99")
        assert updated.description == "Standard widget"
        assert updated.quantity == 10

    def test_explicit_zero_price_is_honored(self, db_session, widget):
        updated = products_service.update_product(product_id=widget.id, patch={"price": Decimal("0.00")})
        assert updated.price == Decimal("0.00")

    def test_quantity_edit_is_booked_in_ledger(self, db_session, widget):
        updated = products_service.update_product(product_id=widget.id, patch={"quantity": 0})
        assert updated.quantity == 0

        history = ledger_service.list_product_transactions(product_id=widget.id, limit=10, offset=0)
        assert len(history) == 1
        assert history[0].transaction_type == "OUT"
        assert history[0].quantity == 10
        assert history[0].notes == QUANTITY_UPDATE_NOTE

    def test_unchanged_quantity_books_nothing(self, db_session, widget):
        products_service.update_product(product_id=widget.id, patch={"quantity": 10})
        assert db_session.query(Transaction).count() == 0

    def test_quantity_past_ceiling_rejected(self, db_session, widget):
        with pytest.raises(ValidationError):
            products_service.update_product(product_id=widget.id, patch={"name": "Big", "quantity": MAX_QUANTITY + 1})
        db_session.expire_all()
        row = db_session.get(Product, widget.id)
        assert (row.name, row.quantity) == ("Blue Widget", 10)
        assert db_session.query(Transaction).count() == 0

    def test_update_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.update_product(product_id=999, patch={"name": "x"})


class TestSoftDelete:

    def test_deleted_product_not_found(self, db_session, widget):
        products_service.delete_product(product_id=widget.id)
        with pytest.raises(NotFoundError):
            products_service.get_product(widget.id)

    def test_double_delete_not_found(self, db_session, widget):
        products_service.delete_product(product_id=widget.id)
        with pytest.raises(NotFoundError):
            products_service.delete_product(product_id=widget.id)

    def test_row_is_kept_as_tombstone(self, db_session, widget):
        products_service.delete_product(product_id=widget.id)
        db_session.expire_all()
        row = db_session.get(Product, widget.id)
        assert row.lifecycle_state == "DELETED"
        assert row.deleted_at is not None
