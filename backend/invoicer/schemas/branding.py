"""
Branding, template settings and template catalog schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class BrandingUpdate(BaseModel):
    """Upsert branding; omitted fields are left unchanged"""
    primary_color: Optional[str] = Field(None, max_length=9, description="#RGB or #RRGGBB")
    secondary_color: Optional[str] = Field(None, max_length=9, description="#RGB or #RRGGBB")
    font_family: Optional[str] = Field(None, max_length=100)
    template_id: Optional[str] = Field(None, max_length=50)


class BrandingResponse(BaseModel):
    """User branding"""
    id: UUID
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    font_family: Optional[str] = None
    template_id: Optional[str] = None
    logo_url: Optional[str] = None
    logo_signed_url: Optional[str] = None  # short-lived URL for previews
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceTemplateResponse(BaseModel):
    """Invoice template catalog entry"""
    id: str
    name: str
    description: Optional[str] = None
    is_premium: bool = False
    preview_image: Optional[str] = None

    class Config:
        from_attributes = True
