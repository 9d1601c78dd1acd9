"""
Stock Service - owner-scoped stock ledger

Quantity on hand is a column on the stock row. It never goes negative:
- create/update validate input (quantity >= 0)
- decrement is a single conditional UPDATE (quantity >= n in the WHERE
  clause), so concurrent decrements cannot race past zero
- the table carries a CHECK (quantity >= 0) as the last line of defence
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from invoicer.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from invoicer.models import StockItem
from invoicer.services.ownership import require_owner
from invoicer.utils.money import round2, to_decimal

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "price", "quantity")


def _clean_name(name: Any) -> str:
    value = (name or "").strip() if isinstance(name, str) or name is None else None
    if not value:
        raise ValidationError("Item name is required", entity="stock_item")
    return value


def _clean_price(price: Any) -> Decimal:
    try:
        value = to_decimal(price)
    except ValueError:
        raise ValidationError(f"Invalid price: {price!r}", entity="stock_item")
    if not value.is_finite():
        raise ValidationError(f"Invalid price: {price!r}", entity="stock_item")
    # the column keeps 2 dp, so the check runs on what will be stored
    value = round2(value)
    if value <= 0:
        raise ValidationError("Price must be greater than 0", entity="stock_item")
    return value


def _clean_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be a whole number, got {quantity!r}", entity="stock_item")
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative", entity="stock_item")
    return quantity


def list_stock_items(db: Session, owner_id: UUID) -> List[StockItem]:
    """All stock items for owner, most recently created first. Empty list when none."""
    require_owner(owner_id)
    return (
        db.query(StockItem)
        .filter(StockItem.owner_id == owner_id)
        .order_by(StockItem.created_at.desc())
        .all()
    )


def get_stock_item(db: Session, owner_id: UUID, item_id: UUID) -> StockItem:
    require_owner(owner_id)
    item = (
        db.query(StockItem)
        .filter(StockItem.id == item_id, StockItem.owner_id == owner_id)
        .first()
    )
    if not item:
        raise NotFoundError(f"Stock item {item_id} not found", entity="stock_item")
    return item


def get_stock_items_by_ids(db: Session, owner_id: UUID, item_ids: List[UUID]) -> Dict[UUID, StockItem]:
    """Owner's stock rows for the given ids, keyed by id. Missing ids are simply absent."""
    require_owner(owner_id)
    if not item_ids:
        return {}
    rows = (
        db.query(StockItem)
        .filter(StockItem.owner_id == owner_id, StockItem.id.in_(set(item_ids)))
        .all()
    )
    return {row.id: row for row in rows}


def create_stock_item(db: Session, owner_id: UUID, name: str, price, quantity: int = 0) -> StockItem:
    """
    Create a stock item.

    Raises ValidationError if name is empty, price <= 0 or quantity < 0
    (quantity 0 is allowed).
    """
    require_owner(owner_id)
    item = StockItem(
        owner_id=owner_id,
        name=_clean_name(name),
        price=_clean_price(price),
        quantity=_clean_quantity(quantity),
    )
    db.add(item)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Stock item create failed for owner %s: %s", owner_id, e)
        raise PersistenceError("Could not save stock item", entity="stock_item") from e
    db.refresh(item)
    logger.info("Created stock item %s (%s) for owner %s", item.id, item.name, owner_id)
    return item


def update_stock_item(db: Session, owner_id: UUID, item_id: UUID, fields: Dict[str, Any]) -> StockItem:
    """
    Partial update. Only name/price/quantity are accepted.

    Previously persisted invoice lines are snapshots and are not touched.
    """
    item = get_stock_item(db, owner_id, item_id)
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}", entity="stock_item")
    if "name" in fields:
        item.name = _clean_name(fields["name"])
    if "price" in fields:
        item.price = _clean_price(fields["price"])
    if "quantity" in fields:
        item.quantity = _clean_quantity(fields["quantity"])
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Stock item %s update failed: %s", item_id, e)
        raise PersistenceError("Could not update stock item", entity="stock_item") from e
    db.refresh(item)
    return item


def delete_stock_item(db: Session, owner_id: UUID, item_id: UUID) -> None:
    """Delete a stock item. Historical invoices keep their own line snapshots."""
    item = get_stock_item(db, owner_id, item_id)
    db.delete(item)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Stock item %s delete failed: %s", item_id, e)
        raise PersistenceError("Could not delete stock item", entity="stock_item") from e
    logger.info("Deleted stock item %s for owner %s", item_id, owner_id)


def decrement_stock(
    db: Session,
    owner_id: UUID,
    item_id: UUID,
    amount: int,
    commit: bool = True,
    stage: Optional[str] = None,
) -> int:
    """
    Atomically subtract amount from the item's quantity and return the new quantity.

    UPDATE stock_items SET quantity = quantity - :n
    WHERE id = :id AND owner_id = :owner AND quantity >= :n

    When no row matches, the row is re-read to tell NotFoundError from
    InsufficientStockError; the quantity is left unchanged either way.
    commit=False leaves the change in the caller's transaction.
    """
    require_owner(owner_id)
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(f"Decrement amount must be a positive whole number, got {amount!r}",
                              stage=stage, entity="stock_item")
    result = db.execute(
        update(StockItem)
        .where(
            StockItem.id == item_id,
            StockItem.owner_id == owner_id,
            StockItem.quantity >= amount,
        )
        .values(quantity=StockItem.quantity - amount)
    )
    if result.rowcount != 1:
        current = (
            db.query(StockItem.name, StockItem.quantity)
            .filter(StockItem.id == item_id, StockItem.owner_id == owner_id)
            .first()
        )
        if current is None:
            raise NotFoundError(f"Stock item {item_id} not found", stage=stage, entity="stock_item")
        raise InsufficientStockError(
            item_id=item_id,
            item_name=current.name,
            available=int(current.quantity),
            requested=amount,
            stage=stage,
        )
    new_quantity = (
        db.query(StockItem.quantity)
        .filter(StockItem.id == item_id, StockItem.owner_id == owner_id)
        .scalar()
    )
    if commit:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Stock decrement commit failed for %s: %s", item_id, e)
            raise PersistenceError("Could not update stock quantity", stage=stage, entity="stock_item") from e
    return int(new_quantity)
