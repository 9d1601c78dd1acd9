"""
Invoice persistence workflow: stages, atomicity, snapshots and reconciliation
"""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from invoicer.exceptions import (
    InsufficientStockError,
    MissingOwnerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from invoicer.models import Invoice, InvoiceItem, StockItem
from invoicer.services import invoice_service, stock_service
from invoicer.services.invoice_service import SelectedItem
from invoicer.utils.money import round2


def _quantity(db, owner_id, item_id):
    db.expire_all()
    return stock_service.get_stock_item(db, owner_id, item_id).quantity


def _invoice_count(db):
    return db.query(Invoice).count(), db.query(InvoiceItem).count()


class TestCreateInvoice:
    def test_single_item_with_discount(self, db_session, owner_a, widget):
        """Widget 100.00 x 3 at 10%: 300.00 / 30.00 / 270.00, stock 10 -> 7"""
        invoice = invoice_service.create_invoice(
            db_session, owner_a, "Asha", "9876543210", [SelectedItem(widget.id, 3)], discount=10
        )
        assert invoice.subtotal == Decimal("300.00")
        assert invoice.discount_amount == Decimal("30.00")
        assert invoice.total == Decimal("270.00")
        assert len(invoice.items) == 1
        assert (invoice.items[0].name, invoice.items[0].price, invoice.items[0].quantity) == (
            "Widget", Decimal("100.00"), 3
        )
        assert _quantity(db_session, owner_a, widget.id) == 7

    def test_insufficient_stock_writes_nothing(self, db_session, owner_a):
        item = stock_service.create_stock_item(db_session, owner_a, "Scarce", "10.00", 2)
        with pytest.raises(InsufficientStockError) as exc:
            invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(item.id, 5)])
        assert exc.value.stage == invoice_service.STAGE_RESERVING
        assert (exc.value.available, exc.value.requested) == (2, 5)
        assert _quantity(db_session, owner_a, item.id) == 2
        assert _invoice_count(db_session) == (0, 0)

    def test_two_items_no_discount(self, db_session, owner_a):
        a = stock_service.create_stock_item(db_session, owner_a, "A", "50.00", 10)
        b = stock_service.create_stock_item(db_session, owner_a, "B", "25.00", 10)
        invoice = invoice_service.create_invoice(
            db_session, owner_a, "C", "1", [SelectedItem(a.id, 2), SelectedItem(b.id, 4)], discount=0
        )
        assert invoice.subtotal == Decimal("200.00")
        assert invoice.total == Decimal("200.00")
        assert [line.name for line in invoice.items] == ["A", "B"]
        assert _quantity(db_session, owner_a, a.id) == 8
        assert _quantity(db_session, owner_a, b.id) == 6

    def test_same_item_on_several_lines_is_summed(self, db_session, owner_a):
        item = stock_service.create_stock_item(db_session, owner_a, "Bolt", "1.00", 5)
        with pytest.raises(InsufficientStockError) as exc:
            invoice_service.create_invoice(
                db_session, owner_a, "C", "1", [SelectedItem(item.id, 3), SelectedItem(item.id, 3)]
            )
        assert exc.value.requested == 6
        invoice = invoice_service.create_invoice(
            db_session, owner_a, "C", "1", [SelectedItem(item.id, 2), SelectedItem(item.id, 3)]
        )
        assert len(invoice.items) == 2
        assert _quantity(db_session, owner_a, item.id) == 0

    def test_unknown_stock_item(self, db_session, owner_a, widget):
        with pytest.raises(NotFoundError) as exc:
            invoice_service.create_invoice(
                db_session, owner_a, "C", "1", [SelectedItem(widget.id, 1), SelectedItem(uuid.uuid4(), 1)]
            )
        assert exc.value.stage == invoice_service.STAGE_VALIDATING
        assert _quantity(db_session, owner_a, widget.id) == 10

    def test_validation_errors_carry_stage(self, db_session, owner_a, widget):
        with pytest.raises(ValidationError) as exc:
            invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(widget.id, 1)], discount=101)
        assert exc.value.stage == invoice_service.STAGE_VALIDATING
        with pytest.raises(ValidationError):
            invoice_service.create_invoice(db_session, owner_a, "C", "1", [])
        with pytest.raises(ValidationError):
            invoice_service.create_invoice(db_session, owner_a, "", "1", [SelectedItem(widget.id, 1)])
        assert _invoice_count(db_session) == (0, 0)

    def test_missing_owner(self, db_session, widget):
        with pytest.raises(MissingOwnerError):
            invoice_service.create_invoice(db_session, None, "C", "1", [SelectedItem(widget.id, 1)])

    def test_second_decrement_failure_rolls_everything_back(self, db_session, owner_a, monkeypatch):
        """Stock taken by a concurrent sale between reserving and writing."""
        a = stock_service.create_stock_item(db_session, owner_a, "A", "10.00", 10)
        b = stock_service.create_stock_item(db_session, owner_a, "B", "10.00", 10)
        real_decrement = invoice_service.decrement_stock

        def racing_decrement(db, owner_id, item_id, amount, **kwargs):
            if item_id == b.id:
                db.execute(update(StockItem).where(StockItem.id == b.id).values(quantity=1))
            return real_decrement(db, owner_id, item_id, amount, **kwargs)

        monkeypatch.setattr(invoice_service, "decrement_stock", racing_decrement)
        with pytest.raises(InsufficientStockError) as exc:
            invoice_service.create_invoice(
                db_session, owner_a, "C", "1", [SelectedItem(a.id, 4), SelectedItem(b.id, 4)]
            )
        assert exc.value.stage == invoice_service.STAGE_WRITING
        assert exc.value.item_name == "B"
        assert _quantity(db_session, owner_a, a.id) == 10
        assert _quantity(db_session, owner_a, b.id) == 10
        assert _invoice_count(db_session) == (0, 0)

    def test_stored_figures_reconcile(self, db_session, owner_a):
        item = stock_service.create_stock_item(db_session, owner_a, "Console", "1000.00", 5)
        invoice = invoice_service.create_invoice(
            db_session, owner_a, "C", "1", [SelectedItem(item.id, 1)], discount="12.345"
        )
        db_session.expire_all()
        stored = invoice_service.get_invoice(db_session, owner_a, invoice.id)
        assert stored.discount == Decimal("12.35")
        assert stored.total == round2(stored.subtotal - stored.subtotal * stored.discount / 100)
        assert stored.subtotal - stored.discount_amount == stored.total

    def test_line_write_failure_is_persistence_error(self, db_session, owner_a, widget, monkeypatch):
        """Header flushed, line flush fails: nothing is kept."""
        real_flush = db_session.flush
        calls = []

        def flaky_flush(*args, **kwargs):
            calls.append(1)
            if len(calls) == 2:
                raise SQLAlchemyError("disk full")
            return real_flush(*args, **kwargs)

        monkeypatch.setattr(db_session, "flush", flaky_flush)
        with pytest.raises(PersistenceError) as exc:
            invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(widget.id, 2)])
        monkeypatch.undo()
        assert exc.value.stage == invoice_service.STAGE_WRITING
        assert _invoice_count(db_session) == (0, 0)
        assert _quantity(db_session, owner_a, widget.id) == 10

    def test_unexpected_error_rolls_back(self, db_session, owner_a, widget, monkeypatch):
        def broken_decrement(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(invoice_service, "decrement_stock", broken_decrement)
        with pytest.raises(RuntimeError):
            invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(widget.id, 2)])
        assert not db_session.new
        assert _invoice_count(db_session) == (0, 0)
        assert _quantity(db_session, owner_a, widget.id) == 10

    def test_line_snapshot_survives_stock_changes(self, db_session, owner_a, widget):
        invoice = invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(widget.id, 2)])
        stock_service.update_stock_item(db_session, owner_a, widget.id, {"name": "Widget Pro", "price": "999.00"})
        stock_service.delete_stock_item(db_session, owner_a, widget.id)
        db_session.expire_all()
        stored = invoice_service.get_invoice(db_session, owner_a, invoice.id)
        assert (stored.items[0].name, stored.items[0].price) == ("Widget", Decimal("100.00"))
        assert stored.total == Decimal("200.00")


class TestInvoiceReads:
    def _make(self, db, owner_id, item, name, contact):
        return invoice_service.create_invoice(db, owner_id, name, contact, [SelectedItem(item.id, 1)])

    def test_list_and_search(self, db_session, owner_a, widget):
        self._make(db_session, owner_a, widget, "Asha Traders", "9876500000")
        self._make(db_session, owner_a, widget, "Ravi Stores", "9123400000")
        assert len(invoice_service.list_invoices(db_session, owner_a)) == 2
        assert [i.customer_name for i in invoice_service.list_invoices(db_session, owner_a, "asha")] == [
            "Asha Traders"
        ]
        assert [i.customer_name for i in invoice_service.list_invoices(db_session, owner_a, "91234")] == [
            "Ravi Stores"
        ]
        assert invoice_service.list_invoices(db_session, owner_a, "nobody") == []

    def test_owner_isolation(self, db_session, owner_a, owner_b, widget):
        invoice = self._make(db_session, owner_a, widget, "Asha", "1")
        assert invoice_service.list_invoices(db_session, owner_b) == []
        with pytest.raises(NotFoundError):
            invoice_service.get_invoice(db_session, owner_b, invoice.id)
        with pytest.raises(NotFoundError):
            invoice_service.delete_invoice(db_session, owner_b, invoice.id)
        with pytest.raises(NotFoundError):
            invoice_service.create_invoice(db_session, owner_b, "C", "1", [SelectedItem(widget.id, 1)])

    def test_delete_removes_lines(self, db_session, owner_a, widget):
        invoice = self._make(db_session, owner_a, widget, "Asha", "1")
        invoice_service.delete_invoice(db_session, owner_a, invoice.id)
        assert _invoice_count(db_session) == (0, 0)
        # stock is not restored
        assert _quantity(db_session, owner_a, widget.id) == 9


class TestReconcile:
    def test_removes_only_headers_without_lines(self, db_session, owner_a, owner_b, widget):
        good = invoice_service.create_invoice(db_session, owner_a, "C", "1", [SelectedItem(widget.id, 1)])
        orphan = Invoice(
            owner_id=owner_a, customer_name="Half written", customer_contact="0",
            subtotal=Decimal("10.00"), discount=0, discount_amount=0, total=Decimal("10.00"),
        )
        foreign = Invoice(
            owner_id=owner_b, customer_name="Other", customer_contact="0",
            subtotal=Decimal("5.00"), discount=0, discount_amount=0, total=Decimal("5.00"),
        )
        db_session.add_all([orphan, foreign])
        db_session.commit()

        assert [i.id for i in invoice_service.find_orphaned_invoices(db_session, owner_a)] == [orphan.id]
        assert invoice_service.reconcile_orphaned_invoices(db_session, owner_a) == [orphan.id]
        assert [i.id for i in invoice_service.list_invoices(db_session, owner_a)] == [good.id]
        assert invoice_service.reconcile_orphaned_invoices(db_session, owner_a) == []
        assert len(invoice_service.find_orphaned_invoices(db_session, owner_b)) == 1
