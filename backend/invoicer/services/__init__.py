"""
Business logic services for Invoicer
"""
from .invoice_composer import InvoiceDraft, LineSelection, compose_invoice
from .invoice_pdf_generator import RenderedDocument, render_invoice_pdf
from .invoice_service import SelectedItem, create_invoice
from .template_settings import TemplateSettings

__all__ = [
    "InvoiceDraft",
    "LineSelection",
    "compose_invoice",
    "RenderedDocument",
    "render_invoice_pdf",
    "SelectedItem",
    "create_invoice",
    "TemplateSettings",
]
