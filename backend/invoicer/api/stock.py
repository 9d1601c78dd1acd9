"""
Stock API routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from invoicer.dependencies import get_current_owner, get_db
from invoicer.schemas.stock import (
    StockDecrementRequest,
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
)
from invoicer.services import stock_service

router = APIRouter()


@router.get("", response_model=List[StockItemResponse])
def list_stock(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """All stock items, newest first"""
    return stock_service.list_stock_items(db, owner_id)


@router.post("", response_model=StockItemResponse, status_code=status.HTTP_201_CREATED)
def create_stock(
    payload: StockItemCreate,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return stock_service.create_stock_item(db, owner_id, payload.name, payload.price, payload.quantity)


@router.get("/{item_id}", response_model=StockItemResponse)
def get_stock(
    item_id: UUID,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return stock_service.get_stock_item(db, owner_id, item_id)


@router.patch("/{item_id}", response_model=StockItemResponse)
def update_stock(
    item_id: UUID,
    payload: StockItemUpdate,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Partial update (name, price, quantity). Existing invoices keep their snapshots."""
    return stock_service.update_stock_item(db, owner_id, item_id, payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stock(
    item_id: UUID,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    stock_service.delete_stock_item(db, owner_id, item_id)


@router.post("/{item_id}/decrement", response_model=StockItemResponse)
def decrement_stock(
    item_id: UUID,
    payload: StockDecrementRequest,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Take units out of stock outside an invoice (breakage, samples). 409 if not enough on hand."""
    stock_service.decrement_stock(db, owner_id, item_id, payload.amount)
    item = stock_service.get_stock_item(db, owner_id, item_id)
    db.refresh(item)
    return item
