"""
Invoice Composer

Turns a customer and a list of selected stock lines into invoice figures.
No I/O here: the persistence workflow snapshots name/price from the stock
rows and hands them in as LineSelection values.

    line_total      = round2(unit_price * quantity)
    subtotal        = sum(line_total)
    total           = round2(subtotal - subtotal * discount / 100)
    discount_amount = subtotal - total
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Sequence
from uuid import UUID

from invoicer.exceptions import ValidationError
from invoicer.utils.money import Number, round2, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineSelection:
    stock_item_id: UUID
    name: str
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class DraftLine:
    stock_item_id: UUID
    name: str
    price: Decimal
    quantity: int
    total: Decimal


@dataclass
class InvoiceDraft:
    """Everything an Invoice row needs except id and timestamp."""
    customer_name: str
    customer_contact: str
    subtotal: Decimal
    discount: Decimal
    discount_amount: Decimal
    total: Decimal
    lines: List[DraftLine] = field(default_factory=list)


def line_total(price: Number, quantity: int) -> Decimal:
    return round2(to_decimal(price) * quantity)


def _required_text(value, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{label} is required", entity="invoice")
    return text


def _discount(value: Number) -> Decimal:
    try:
        discount = to_decimal(value if value is not None else 0)
    except ValueError:
        raise ValidationError(f"Invalid discount: {value!r}", entity="invoice")
    if not discount.is_finite():
        raise ValidationError(f"Invalid discount: {value!r}", entity="invoice")
    # stored as Numeric(5, 2); every figure is computed from the stored value
    discount = round2(discount)
    if discount < 0 or discount > HUNDRED:
        raise ValidationError("Discount must be between 0 and 100", entity="invoice")
    return discount


def compose_invoice(
    customer_name: str,
    customer_contact: str,
    selections: Sequence[LineSelection],
    discount: Number = 0,
) -> InvoiceDraft:
    """
    Validate the inputs and compute line totals, subtotal, discount and total.

    Raises ValidationError for an empty selection, a non-positive or
    fractional quantity, a negative unit price, a discount outside [0, 100]
    or an empty customer field.
    """
    name = _required_text(customer_name, "Customer name")
    contact = _required_text(customer_contact, "Customer contact")
    if not selections:
        raise ValidationError("Please add at least one item", entity="invoice")
    pct = _discount(discount)

    lines: List[DraftLine] = []
    for sel in selections:
        qty = sel.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(
                f"Quantity for {sel.name} must be a whole number greater than 0", entity="invoice_item"
            )
        try:
            price = to_decimal(sel.unit_price)
        except ValueError:
            raise ValidationError(f"Invalid price for {sel.name}", entity="invoice_item")
        if not price.is_finite() or price < 0:
            raise ValidationError(f"Price for {sel.name} cannot be negative", entity="invoice_item")
        price = round2(price)
        lines.append(
            DraftLine(
                stock_item_id=sel.stock_item_id,
                name=sel.name,
                price=price,
                quantity=qty,
                total=line_total(price, qty),
            )
        )

    subtotal = round2(sum((line.total for line in lines), Decimal("0")))
    total = round2(subtotal - subtotal * pct / HUNDRED)
    return InvoiceDraft(
        customer_name=name,
        customer_contact=contact,
        subtotal=subtotal,
        discount=pct,
        discount_amount=subtotal - total,
        total=total,
        lines=lines,
    )
