"""
Invoice composer: line totals, discount and validation
"""
import uuid
from decimal import Decimal

import pytest

from invoicer.exceptions import ValidationError
from invoicer.services.invoice_composer import LineSelection, compose_invoice, line_total
from invoicer.utils.money import round2


def _line(name="Widget", price="100.00", qty=1):
    return LineSelection(stock_item_id=uuid.uuid4(), name=name, unit_price=Decimal(price), quantity=qty)


class TestLineTotal:
    @pytest.mark.parametrize("price,qty", [
        ("0", 1), ("0.01", 3), ("19.99", 7), ("33.335", 3), ("1000000.50", 2), ("2.675", 1),
    ])
    def test_matches_round2_of_product(self, price, qty):
        assert line_total(Decimal(price), qty) == round2(Decimal(price) * qty)


class TestComposeInvoice:
    def test_discount_applied_to_subtotal(self):
        """Widget 100.00 x 3 at 10% -> 300.00 / 30.00 / 270.00"""
        draft = compose_invoice("Asha", "9876543210", [_line(qty=3)], discount=10)
        assert draft.subtotal == Decimal("300.00")
        assert draft.discount_amount == Decimal("30.00")
        assert draft.total == Decimal("270.00")
        assert [(l.name, l.quantity, l.total) for l in draft.lines] == [("Widget", 3, Decimal("300.00"))]

    def test_two_lines_no_discount(self):
        draft = compose_invoice("Ravi", "555", [_line("A", "50", 2), _line("B", "25", 4)], discount=0)
        assert draft.subtotal == Decimal("200.00")
        assert draft.total == Decimal("200.00")
        assert draft.discount_amount == Decimal("0.00")

    @pytest.mark.parametrize("discount", ["0", "12.5", "33.33", "99.99", "100"])
    def test_totals_reconcile(self, discount):
        lines = [_line("A", "19.99", 3), _line("B", "0.07", 11), _line("C", "1234.56", 1)]
        draft = compose_invoice("C", "1", lines, discount=Decimal(discount))
        s = draft.subtotal
        assert draft.total == round2(s - s * Decimal(discount) / 100)
        assert draft.total <= s
        assert draft.subtotal - draft.discount_amount == draft.total

    def test_discount_rounded_before_totals(self):
        draft = compose_invoice("C", "1", [_line(price="1000.00")], discount="12.345")
        assert draft.discount == Decimal("12.35")
        assert draft.total == round2(draft.subtotal - draft.subtotal * draft.discount / 100)
        assert draft.total == Decimal("876.50")
        assert draft.discount_amount == Decimal("123.50")

    def test_unit_price_rounded_before_line_total(self):
        draft = compose_invoice("C", "1", [_line(price="0.125", qty=8)])
        assert draft.lines[0].price == Decimal("0.13")
        assert draft.lines[0].total == Decimal("1.04")

    def test_full_discount(self):
        draft = compose_invoice("C", "1", [_line(qty=2)], discount=100)
        assert draft.total == Decimal("0.00")
        assert draft.discount_amount == Decimal("200.00")

    @pytest.mark.parametrize("discount", [-1, "100.01", 150])
    def test_discount_out_of_range(self, discount):
        with pytest.raises(ValidationError):
            compose_invoice("C", "1", [_line()], discount=discount)

    def test_empty_selection(self):
        with pytest.raises(ValidationError):
            compose_invoice("C", "1", [], discount=0)

    @pytest.mark.parametrize("qty", [0, -2, 1.5, True])
    def test_bad_quantity(self, qty):
        with pytest.raises(ValidationError):
            compose_invoice("C", "1", [_line(qty=qty)])

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            compose_invoice("C", "1", [_line(price="-1.00")])

    def test_free_item_allowed(self):
        draft = compose_invoice("C", "1", [_line(price="0", qty=5)])
        assert draft.total == Decimal("0.00")

    @pytest.mark.parametrize("name,contact", [("", "1"), ("   ", "1"), ("C", ""), ("C", None)])
    def test_customer_fields_required(self, name, contact):
        with pytest.raises(ValidationError):
            compose_invoice(name, contact, [_line()])
