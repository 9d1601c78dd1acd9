"""
Stock item schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from decimal import Decimal


class StockItemBase(BaseModel):
    """Stock item base schema"""
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., gt=0, description="Unit price")
    quantity: int = Field(default=0, ge=0, description="Units on hand")


class StockItemCreate(StockItemBase):
    """Create stock item request"""
    pass


class StockItemUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, gt=0)
    quantity: Optional[int] = Field(None, ge=0)


class StockDecrementRequest(BaseModel):
    """Manual stock decrement"""
    amount: int = Field(..., gt=0)


class StockItemResponse(StockItemBase):
    """Stock item response"""
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
