"""
Dashboard API routes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID

from invoicer.dependencies import get_current_owner, get_db
from invoicer.schemas.dashboard import DashboardSummary, RevenueAnalyticsResponse
from invoicer.services import analytics_service

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
def dashboard_summary(
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    return analytics_service.dashboard_summary(db, owner_id)


@router.get("/revenue", response_model=RevenueAnalyticsResponse)
def revenue_analytics(
    period: str = Query("month", description="day | week | month | year"),
    owner_id: UUID = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    buckets = analytics_service.revenue_by_period(db, owner_id, period)
    return {
        "period": period,
        "current_period_revenue": analytics_service.current_period_revenue(db, owner_id, period),
        "buckets": buckets,
    }
