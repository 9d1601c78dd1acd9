"""
Database models for Invoicer
"""
from invoicer.database import Base

from .stock import StockItem
from .invoice import Invoice, InvoiceItem
from .branding import UserBranding, CompanyProfile, InvoiceTemplate

__all__ = [
    "Base",
    "StockItem",
    "Invoice",
    "InvoiceItem",
    "UserBranding",
    "CompanyProfile",
    "InvoiceTemplate",
]
