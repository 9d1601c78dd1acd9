"""
Branding API routes: colors/font/template, logo upload, invoice template settings
"""
from fastapi import APIRouter, Body, Depends, File, UploadFile
from sqlalchemy.orm import Session
from typing import Any, Dict, List
from uuid import UUID

from invoicer.dependencies import get_current_owner, get_db
from invoicer.schemas.branding import BrandingResponse, BrandingUpdate, InvoiceTemplateResponse
from invoicer.services import branding_service, logo_storage_service
from invoicer.services.template_settings import TemplateSettings

router = APIRouter()


def _branding_response(branding) -> BrandingResponse:
    out = BrandingResponse.model_validate(branding)
    out.logo_signed_url = logo_storage_service.get_signed_url(branding.logo_url)
    return out


@router.get("", response_model=BrandingResponse)
def get_branding(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Owner's branding (created with defaults on first access)"""
    return _branding_response(branding_service.get_user_branding(db, owner_id))


@router.put("", response_model=BrandingResponse)
def update_branding(
    payload: BrandingUpdate,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    branding = branding_service.save_user_branding(db, owner_id, payload.model_dump(exclude_unset=True))
    return _branding_response(branding)


@router.post("/logo", response_model=BrandingResponse)
async def upload_branding_logo(
    file: UploadFile = File(...),
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """
    Upload company logo (PNG/JPEG, max 2MB) to private storage.
    Returns branding with the stored path and a short-lived preview URL.
    """
    content = await file.read()
    content_type = (file.content_type or "").split(";")[0].strip()
    path = logo_storage_service.upload_logo(owner_id, content, content_type)
    branding = branding_service.set_logo_path(db, owner_id, path)
    return _branding_response(branding)


@router.get("/template-settings", response_model=TemplateSettings)
def get_template_settings(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Defaults merged with saved settings (camelCase keys)"""
    return branding_service.get_template_settings(db, owner_id)


@router.put("/template-settings", response_model=TemplateSettings)
def update_template_settings(
    overrides: Dict[str, Any] = Body(...),
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Field-wise save: only the keys sent are changed. Accepts camelCase or snake_case keys."""
    return branding_service.save_template_settings(db, owner_id, overrides)


@router.get("/templates", response_model=List[InvoiceTemplateResponse])
def list_templates(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return branding_service.list_invoice_templates(db)
