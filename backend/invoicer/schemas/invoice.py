"""
Invoice schemas
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from uuid import UUID
from decimal import Decimal


class InvoiceLineCreate(BaseModel):
    """A selected stock item and quantity. Name and price are taken from stock at creation."""
    stock_item_id: UUID
    quantity: int = Field(..., gt=0)


class InvoiceCreate(BaseModel):
    """Create invoice request"""
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_contact: str = Field(..., min_length=1, max_length=255, description="Customer phone number")
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Invoice-level discount percent")
    items: List[InvoiceLineCreate] = Field(..., min_length=1)


class InvoiceItemResponse(BaseModel):
    """Invoice line (snapshot)"""
    id: UUID
    position: int
    name: str
    price: Decimal
    quantity: int
    total: Decimal

    class Config:
        from_attributes = True


class InvoiceSummary(BaseModel):
    """Invoice header without lines (list views)"""
    id: UUID
    customer_name: str
    customer_contact: str
    subtotal: Decimal
    discount: Decimal
    discount_amount: Decimal
    total: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceResponse(InvoiceSummary):
    """Invoice with lines"""
    items: List[InvoiceItemResponse] = []


class ReconcileResponse(BaseModel):
    """Result of removing line-less invoice headers"""
    removed: int
    invoice_ids: List[UUID] = []
