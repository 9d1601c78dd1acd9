"""
Dashboard figures and revenue analytics.

All bucketing is done in UTC. SQLite hands back naive datetimes, so every
created_at is normalized before it is compared or bucketed.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from invoicer.exceptions import ValidationError
from invoicer.models import Invoice, StockItem
from invoicer.services.ownership import require_owner
from invoicer.utils.money import round2

logger = logging.getLogger(__name__)

PERIOD_DAY = "day"
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_YEAR = "year"
PERIODS = (PERIOD_DAY, PERIOD_WEEK, PERIOD_MONTH, PERIOD_YEAR)

RECENT_LIMIT = 5


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _week_start(d: date) -> date:
    # weeks start on Sunday
    return d - timedelta(days=(d.weekday() + 1) % 7)


def _one_year_before(value: datetime) -> datetime:
    try:
        return value.replace(year=value.year - 1)
    except ValueError:  # Feb 29
        return value.replace(year=value.year - 1, day=28)


def window_start(period: str, now: datetime) -> datetime:
    """Start of the look-back window for period, relative to now (UTC)."""
    today = _midnight(_as_utc(now))
    if period == PERIOD_DAY:
        return today - timedelta(days=7)
    if period == PERIOD_WEEK:
        return today - timedelta(days=28)
    if period == PERIOD_MONTH:
        return _one_year_before(today)
    if period == PERIOD_YEAR:
        return today.replace(year=today.year - 5, month=1, day=1)
    raise ValidationError(f"Unknown period: {period}. Use one of {', '.join(PERIODS)}", entity="analytics")


def current_period_start(period: str, now: datetime) -> datetime:
    """Start of the period now falls in (today, this week, this month, this year)."""
    today = _midnight(_as_utc(now))
    if period == PERIOD_DAY:
        return today
    if period == PERIOD_WEEK:
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == PERIOD_MONTH:
        return today.replace(day=1)
    if period == PERIOD_YEAR:
        return today.replace(month=1, day=1)
    raise ValidationError(f"Unknown period: {period}. Use one of {', '.join(PERIODS)}", entity="analytics")


def bucket_key(period: str, created_at: datetime) -> str:
    d = _as_utc(created_at).date()
    if period == PERIOD_DAY:
        return d.isoformat()
    if period == PERIOD_WEEK:
        return _week_start(d).isoformat()
    if period == PERIOD_MONTH:
        return f"{d.year:04d}-{d.month:02d}"
    return f"{d.year:04d}"


def _invoices_since(db: Session, owner_id: UUID, start: datetime) -> List[Invoice]:
    rows = (
        db.query(Invoice)
        .filter(Invoice.owner_id == owner_id, Invoice.created_at >= start)
        .order_by(Invoice.created_at.asc())
        .all()
    )
    # second pass in Python: naive SQLite values vs aware bounds
    return [inv for inv in rows if _as_utc(inv.created_at) >= start]


def revenue_by_period(
    db: Session,
    owner_id: UUID,
    period: str,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Revenue and invoice count per bucket within the period's look-back window.

    day: last 7 days per day; week: last 28 days per Sunday-start week;
    month: last year per month; year: last 5 years (from Jan 1) per year.
    Buckets are ascending; empty buckets are omitted.
    """
    require_owner(owner_id)
    now = _as_utc(now or datetime.now(timezone.utc))
    start = window_start(period, now)

    buckets: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for inv in _invoices_since(db, owner_id, start):
        key = bucket_key(period, inv.created_at)
        bucket = buckets.setdefault(key, {"period": key, "revenue": Decimal("0"), "count": 0})
        bucket["revenue"] += Decimal(inv.total)
        bucket["count"] += 1

    out = sorted(buckets.values(), key=lambda b: b["period"])
    for b in out:
        b["revenue"] = round2(b["revenue"])
    return out


def current_period_revenue(
    db: Session,
    owner_id: UUID,
    period: str,
    now: Optional[datetime] = None,
) -> Decimal:
    require_owner(owner_id)
    now = _as_utc(now or datetime.now(timezone.utc))
    start = current_period_start(period, now)
    return round2(sum((Decimal(inv.total) for inv in _invoices_since(db, owner_id, start)), Decimal("0")))


def dashboard_summary(db: Session, owner_id: UUID) -> Dict[str, Any]:
    """Headline counts, total revenue and the most recent invoices and stock items."""
    require_owner(owner_id)
    invoice_count, revenue = (
        db.query(func.count(Invoice.id), func.coalesce(func.sum(Invoice.total), 0))
        .filter(Invoice.owner_id == owner_id)
        .one()
    )
    stock_count = (
        db.query(func.count(StockItem.id))
        .filter(StockItem.owner_id == owner_id)
        .scalar()
    )
    recent_invoices = (
        db.query(Invoice)
        .filter(Invoice.owner_id == owner_id)
        .order_by(Invoice.created_at.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    recent_stock = (
        db.query(StockItem)
        .filter(StockItem.owner_id == owner_id)
        .order_by(StockItem.created_at.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    return {
        "total_invoices": int(invoice_count or 0),
        "total_stock_items": int(stock_count or 0),
        "total_revenue": round2(revenue or 0),
        "recent_invoices": recent_invoices,
        "recent_stock_items": recent_stock,
    }
