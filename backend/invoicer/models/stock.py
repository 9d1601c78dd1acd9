"""
Stock item model
"""
from sqlalchemy import Column, String, Numeric, Integer, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import TIMESTAMP
import uuid
from invoicer.database import Base
from invoicer.models._common import utcnow


class StockItem(Base):
    """Sellable item with on-hand quantity. Owned by a single user."""
    __tablename__ = "stock_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),
        Index("ix_stock_items_owner_created", "owner_id", "created_at"),
    )
