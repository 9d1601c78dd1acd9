"""
API routes for Invoicer
"""
from .stock import router as stock_router
from .invoices import router as invoices_router
from .branding import router as branding_router
from .company import router as company_router
from .dashboard import router as dashboard_router

__all__ = [
    "stock_router",
    "invoices_router",
    "branding_router",
    "company_router",
    "dashboard_router",
]
