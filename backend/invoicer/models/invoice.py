"""
Invoice models
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TIMESTAMP
import uuid
from invoicer.database import Base
from invoicer.models._common import utcnow


class Invoice(Base):
    """Invoice header. Immutable after creation except for deletion."""
    __tablename__ = "invoices"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_contact = Column(String(255), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)
    discount = Column(Numeric(5, 2), nullable=False, default=0)  # percent, 0-100
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    # Relationships
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    __table_args__ = (
        Index("ix_invoices_owner_created", "owner_id", "created_at"),
        {"comment": "Invoice header. total = subtotal - subtotal * discount / 100."},
    )


class InvoiceItem(Base):
    """Invoice line. Snapshot of name/price at creation time; no link to the live stock row."""
    __tablename__ = "invoice_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total = Column(Numeric(14, 2), nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")
