"""
Invoice API routes
"""
import logging
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from invoicer.dependencies import get_current_owner, get_db
from invoicer.schemas.invoice import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceSummary,
    ReconcileResponse,
)
from invoicer.services import branding_service, invoice_service, logo_storage_service
from invoicer.services.invoice_pdf_generator import render_invoice_pdf
from invoicer.services.invoice_service import SelectedItem

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[InvoiceSummary])
def list_invoices(
    search: Optional[str] = Query(None, description="Match customer name or phone"),
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return invoice_service.list_invoices(db, owner_id, search)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """
    Create an invoice from selected stock items and decrement stock.

    All-or-nothing: on any failure nothing is stored and stock is unchanged.
    409 when an item does not have enough stock.
    """
    return invoice_service.create_invoice(
        db,
        owner_id,
        customer_name=payload.customer_name,
        customer_contact=payload.customer_contact,
        items=[SelectedItem(stock_item_id=i.stock_item_id, quantity=i.quantity) for i in payload.items],
        discount=payload.discount,
    )


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile_invoices(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Remove invoice headers that have no line items."""
    removed = invoice_service.reconcile_orphaned_invoices(db, owner_id)
    return ReconcileResponse(removed=len(removed), invoice_ids=removed)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: UUID,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return invoice_service.get_invoice(db, owner_id, invoice_id)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: UUID,
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    invoice_service.delete_invoice(db, owner_id, invoice_id)


@router.get("/{invoice_id}/pdf")
def get_invoice_pdf(
    invoice_id: UUID,
    preview: bool = Query(False, description="Preview filename instead of the invoice number"),
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Render the invoice with the owner's branding, template settings and company profile."""
    invoice = invoice_service.get_invoice(db, owner_id, invoice_id)
    branding = branding_service.get_user_branding(db, owner_id)
    profile = branding_service.get_company_profile(db, owner_id)
    logo_bytes = logo_storage_service.download_logo(branding.logo_url) if branding.logo_url else None
    doc = render_invoice_pdf(invoice, branding, profile, is_preview=preview, logo_bytes=logo_bytes)
    return Response(
        content=doc.content,
        media_type=doc.media_type,
        headers={"Content-Disposition": f'attachment; filename="{doc.filename}"'},
    )
