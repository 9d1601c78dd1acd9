"""
Dashboard and analytics schemas
"""
from pydantic import BaseModel
from typing import List, Literal
from decimal import Decimal

from .invoice import InvoiceSummary
from .stock import StockItemResponse


class DashboardSummary(BaseModel):
    """Headline figures for the dashboard"""
    total_invoices: int
    total_stock_items: int
    total_revenue: Decimal
    recent_invoices: List[InvoiceSummary] = []
    recent_stock_items: List[StockItemResponse] = []


class RevenueBucket(BaseModel):
    period: str
    revenue: Decimal
    count: int


class RevenueAnalyticsResponse(BaseModel):
    """Revenue per bucket over the period's look-back window"""
    period: Literal["day", "week", "month", "year"]
    current_period_revenue: Decimal
    buckets: List[RevenueBucket] = []
