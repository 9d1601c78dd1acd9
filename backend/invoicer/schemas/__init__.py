"""
Pydantic schemas for request/response validation
"""
from .stock import StockItemCreate, StockItemUpdate, StockItemResponse, StockDecrementRequest
from .invoice import (
    InvoiceCreate, InvoiceLineCreate, InvoiceResponse, InvoiceSummary,
    InvoiceItemResponse, ReconcileResponse,
)
from .branding import BrandingUpdate, BrandingResponse, InvoiceTemplateResponse
from .company import CompanyProfileUpdate, CompanyProfileResponse
from .dashboard import DashboardSummary, RevenueBucket, RevenueAnalyticsResponse

__all__ = [
    # Stock
    "StockItemCreate",
    "StockItemUpdate",
    "StockItemResponse",
    "StockDecrementRequest",
    # Invoice
    "InvoiceCreate",
    "InvoiceLineCreate",
    "InvoiceResponse",
    "InvoiceSummary",
    "InvoiceItemResponse",
    "ReconcileResponse",
    # Branding
    "BrandingUpdate",
    "BrandingResponse",
    "InvoiceTemplateResponse",
    # Company
    "CompanyProfileUpdate",
    "CompanyProfileResponse",
    # Dashboard
    "DashboardSummary",
    "RevenueBucket",
    "RevenueAnalyticsResponse",
]
