"""
Branding, company profile and invoice template models
"""
from sqlalchemy import Column, String, Text, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import TIMESTAMP
import uuid
from invoicer.database import Base
from invoicer.models._common import utcnow


class UserBranding(Base):
    """Per-user display configuration consumed by the invoice renderer. One row per owner."""
    __tablename__ = "user_branding"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False, unique=True)
    primary_color = Column(String(9))
    secondary_color = Column(String(9))
    font_family = Column(String(100))
    template_id = Column(String(50))
    logo_url = Column(Text)  # storage path, never a public URL
    template_settings = Column(Text)  # JSON blob of TemplateSettings overrides
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class CompanyProfile(Base):
    """Company letterhead details. One row per owner."""
    __tablename__ = "company_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False, unique=True)
    company_name = Column(String(255), nullable=False)
    company_address = Column(Text)
    company_phone = Column(String(50))
    company_email = Column(String(255))
    website = Column(String(255))
    tax_id = Column(String(100))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class InvoiceTemplate(Base):
    """Catalog of selectable invoice layouts (shared by all users)."""
    __tablename__ = "invoice_templates"

    id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_premium = Column(Boolean, default=False)
    preview_image = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
