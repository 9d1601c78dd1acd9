"""
Company profile schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class CompanyProfileBase(BaseModel):
    """Company profile base schema"""
    company_address: Optional[str] = None
    company_phone: Optional[str] = Field(None, max_length=50)
    company_email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    tax_id: Optional[str] = Field(None, max_length=100)


class CompanyProfileUpdate(CompanyProfileBase):
    """Upsert company profile. company_name is required on first save."""
    company_name: Optional[str] = Field(None, max_length=255)


class CompanyProfileResponse(CompanyProfileBase):
    """Company profile response"""
    id: UUID
    company_name: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
