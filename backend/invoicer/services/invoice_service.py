"""
Invoice Service - persistence workflow and invoice reads

create_invoice runs in explicit stages:

    validating -> reserving -> writing -> committed

Validating and reserving only read. Writing happens inside a single
SQLAlchemy transaction: header flush, line flush, then one conditional stock
decrement per stock item. Any failure rolls the whole transaction back, so a
header without lines or a decrement without an invoice is never committed.
Every error leaving the workflow carries the stage it failed in.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from invoicer.exceptions import (
    InsufficientStockError,
    InvoicerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from invoicer.models import Invoice, InvoiceItem
from invoicer.services.invoice_composer import LineSelection, compose_invoice
from invoicer.services.ownership import require_owner
from invoicer.services.stock_service import decrement_stock, get_stock_items_by_ids

logger = logging.getLogger(__name__)

STAGE_VALIDATING = "validating"
STAGE_RESERVING = "reserving"
STAGE_WRITING = "writing"
STAGE_COMMITTED = "committed"


@dataclass(frozen=True)
class SelectedItem:
    """A stock item picked for an invoice and how many units of it."""
    stock_item_id: UUID
    quantity: int


def _as_uuid(value, label: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {label}: {value!r}")


def create_invoice(
    db: Session,
    owner_id: UUID,
    customer_name: str,
    customer_contact: str,
    items: Sequence[SelectedItem],
    discount=0,
) -> Invoice:
    """
    Validate, reserve and persist an invoice, decrementing stock.

    Returns the committed Invoice with its lines loaded.
    Raises ValidationError / NotFoundError (validating),
    InsufficientStockError (reserving, or writing if another request took the
    stock in between) and PersistenceError (writing).
    """
    require_owner(owner_id)
    stage = STAGE_VALIDATING
    try:
        # --- validating: snapshot stock rows and compute figures ---
        if not items:
            raise ValidationError("Please add at least one item", entity="invoice")
        item_ids = [_as_uuid(sel.stock_item_id, "stock item id") for sel in items]
        stock_rows = get_stock_items_by_ids(db, owner_id, item_ids)
        selections: List[LineSelection] = []
        for item_id, sel in zip(item_ids, items):
            row = stock_rows.get(item_id)
            if row is None:
                raise NotFoundError(f"Stock item {item_id} not found", entity="stock_item")
            selections.append(
                LineSelection(
                    stock_item_id=item_id,
                    name=row.name,
                    unit_price=row.price,
                    quantity=sel.quantity,
                )
            )
        draft = compose_invoice(customer_name, customer_contact, selections, discount)

        # --- reserving: the same item may appear on several lines ---
        stage = STAGE_RESERVING
        requested = OrderedDict()
        for line in draft.lines:
            requested[line.stock_item_id] = requested.get(line.stock_item_id, 0) + line.quantity
        for item_id, qty in requested.items():
            row = stock_rows[item_id]
            if row.quantity < qty:
                raise InsufficientStockError(
                    item_id=item_id,
                    item_name=row.name,
                    available=row.quantity,
                    requested=qty,
                )

        # --- writing: one transaction ---
        stage = STAGE_WRITING
        invoice = Invoice(
            owner_id=owner_id,
            customer_name=draft.customer_name,
            customer_contact=draft.customer_contact,
            subtotal=draft.subtotal,
            discount=draft.discount,
            discount_amount=draft.discount_amount,
            total=draft.total,
        )
        db.add(invoice)
        db.flush()

        db.add_all([
            InvoiceItem(
                invoice_id=invoice.id,
                position=position,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                total=line.total,
            )
            for position, line in enumerate(draft.lines)
        ])
        db.flush()

        for item_id, qty in requested.items():
            decrement_stock(db, owner_id, item_id, qty, commit=False, stage=STAGE_WRITING)

        db.commit()
        stage = STAGE_COMMITTED
        db.refresh(invoice)
    except InvoicerError as e:
        db.rollback()
        if e.stage is None:
            e.stage = stage
        logger.warning(
            "Invoice creation failed for owner %s at stage %s (%s): %s",
            owner_id, e.stage, e.entity, e.message,
        )
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Invoice write failed for owner %s at stage %s: %s", owner_id, stage, e)
        raise PersistenceError("Could not save invoice. Please try again.", stage=stage, entity="invoice") from e
    except Exception:
        db.rollback()
        logger.exception("Unexpected error creating invoice for owner %s at stage %s", owner_id, stage)
        raise

    logger.info(
        "Invoice %s %s for owner %s: %d line(s), total %s",
        invoice.id, stage, owner_id, len(invoice.items), invoice.total,
    )
    return invoice


def list_invoices(db: Session, owner_id: UUID, search: Optional[str] = None) -> List[Invoice]:
    """Owner's invoices, newest first. search matches customer name or contact (case-insensitive)."""
    require_owner(owner_id)
    query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(Invoice.customer_name.ilike(pattern), Invoice.customer_contact.ilike(pattern))
        )
    return query.order_by(Invoice.created_at.desc()).all()


def get_invoice(db: Session, owner_id: UUID, invoice_id: UUID) -> Invoice:
    require_owner(owner_id)
    invoice = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
        .first()
    )
    if not invoice:
        raise NotFoundError(f"Invoice {invoice_id} not found", entity="invoice")
    return invoice


def delete_invoice(db: Session, owner_id: UUID, invoice_id: UUID) -> None:
    """Delete an invoice and its lines. Stock is not restored."""
    invoice = get_invoice(db, owner_id, invoice_id)
    db.delete(invoice)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Invoice %s delete failed: %s", invoice_id, e)
        raise PersistenceError("Could not delete invoice", entity="invoice") from e
    logger.info("Deleted invoice %s for owner %s", invoice_id, owner_id)


def find_orphaned_invoices(db: Session, owner_id: UUID) -> List[Invoice]:
    """Invoice headers with no line items (left behind by older non-transactional writers)."""
    require_owner(owner_id)
    return (
        db.query(Invoice)
        .filter(Invoice.owner_id == owner_id, ~Invoice.items.any())
        .order_by(Invoice.created_at.asc())
        .all()
    )


def reconcile_orphaned_invoices(db: Session, owner_id: UUID) -> List[UUID]:
    """Delete line-less invoice headers for owner. Returns the deleted ids."""
    orphans = find_orphaned_invoices(db, owner_id)
    if not orphans:
        return []
    removed = [inv.id for inv in orphans]
    for inv in orphans:
        db.delete(inv)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Orphan reconciliation failed for owner %s: %s", owner_id, e)
        raise PersistenceError("Could not remove orphaned invoices", entity="invoice") from e
    logger.warning("Removed %d orphaned invoice header(s) for owner %s", len(removed), owner_id)
    return removed
