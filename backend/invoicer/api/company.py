"""
Company profile API routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID

from invoicer.dependencies import get_current_owner, get_db
from invoicer.schemas.company import CompanyProfileResponse, CompanyProfileUpdate
from invoicer.services import branding_service

router = APIRouter()


@router.get("", response_model=CompanyProfileResponse)
def get_company_profile(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    profile = branding_service.get_company_profile(db, owner_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company profile not set up")
    return profile


@router.put("", response_model=CompanyProfileResponse)
def save_company_profile(
    payload: CompanyProfileUpdate,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Create or update the company profile (one per owner)"""
    return branding_service.save_company_profile(db, owner_id, payload.model_dump(exclude_unset=True))
