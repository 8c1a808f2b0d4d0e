# Overview: Read-only reporting projections over committed sales, products and users.

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, Sale, User
from ..permissions import ROLE_CASHIER
from ..time_utils import start_of_month, start_of_week, start_of_year, to_utc_z, utcnow
from ..validation import ValidationError, format_cents, parse_int


class ReportPeriod(str, Enum):
    """Closed set of truncation units. Only these ever reach a query."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


_PERIOD_START = {
    ReportPeriod.WEEK: start_of_week,
    ReportPeriod.MONTH: start_of_month,
    ReportPeriod.YEAR: start_of_year,
}


def parse_period(value) -> ReportPeriod:
    if isinstance(value, ReportPeriod):
        return value
    try:
        return ReportPeriod(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid period: must be week, month, or year")


def parse_days(value) -> int:
    """Trailing window for the heatmap; defaults to HEATMAP_DEFAULT_DAYS, capped at HEATMAP_MAX_DAYS."""
    default = int(current_app.config.get("HEATMAP_DEFAULT_DAYS", 90))
    maximum = int(current_app.config.get("HEATMAP_MAX_DAYS", 366))
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    days = parse_int(value, "days", minimum=1, maximum=None)
    return min(days, maximum)


def period_summary(period, *, now: datetime | None = None) -> dict:
    """Revenue and items sold since the start of the current week / month / year (UTC)."""
    unit = parse_period(period)
    since = _PERIOD_START[unit](now or utcnow())

    revenue_cents, items = (
        db.session.query(
            func.coalesce(func.sum(Sale.total_price_cents), 0),
            func.coalesce(func.sum(Sale.quantity), 0),
        )
        .filter(Sale.created_at >= since)
        .one()
    )

    return {
        "period": unit.value,
        "since": to_utc_z(since),
        "revenue": format_cents(int(revenue_cents or 0)),
        "revenue_cents": int(revenue_cents or 0),
        "items": int(items or 0),
    }


def overall_summary() -> dict:
    """All-time totals."""
    revenue_cents, orders, items = db.session.query(
        func.coalesce(func.sum(Sale.total_price_cents), 0),
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.quantity), 0),
    ).one()

    total_products = db.session.query(func.count(Product.id)).scalar() or 0
    total_cashiers = (
        db.session.query(func.count(User.id)).filter(User.role == ROLE_CASHIER).scalar() or 0
    )

    return {
        "total_products": int(total_products),
        "total_cashiers": int(total_cashiers),
        "revenue": format_cents(int(revenue_cents or 0)),
        "revenue_cents": int(revenue_cents or 0),
        "orders": int(orders or 0),
        "items": int(items or 0),
    }


def daily_heatmap(days=None, *, now: datetime | None = None) -> list[dict]:
    """
    Sale count and revenue per calendar day (UTC) over the trailing window,
    oldest day first. Days without sales are omitted.
    """
    window = parse_days(days)
    since = (now or utcnow()) - timedelta(days=window)

    day = func.date(Sale.created_at)
    rows = (
        db.session.query(
            day.label("day"),
            func.count(Sale.id).label("count"),
            func.coalesce(func.sum(Sale.total_price_cents), 0).label("revenue_cents"),
        )
        .filter(Sale.created_at >= since)
        .group_by(day)
        .order_by(day)
        .all()
    )

    return [
        {
            "date": row.day if isinstance(row.day, str) else row.day.isoformat(),
            "count": int(row.count or 0),
            "revenue": format_cents(int(row.revenue_cents or 0)),
            "revenue_cents": int(row.revenue_cents or 0),
        }
        for row in rows
    ]
