"""
Reporting tests.

Verifies:
- Period summaries only count sales since the period start
- Overall summary totals
- Daily heatmap buckets and window bounds
- Period / days input validation
- Inclusive date bounds match a sale recorded at exactly that instant
"""

import re
from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from shopledger.extensions import db
from shopledger.models import Sale
from shopledger.services import ledger_service, reporting_service, sales_service
from shopledger.time_utils import start_of_month, start_of_week, start_of_year, utcnow
from shopledger.validation import ValidationError


@pytest.fixture
def sold(cashier_actor, products):
    coffee, bagel, _ = products
    ledger_service.record_sale(actor=cashier_actor, product_id=coffee.id, quantity=2)  # 7.00
    ledger_service.record_sale(actor=cashier_actor, product_id=bagel.id, quantity=3)   # 6.75
    return products


def _old_sale(product, cashier, days_ago):
    sale = Sale(
        product_id=product.id,
        cashier_id=cashier.id,
        quantity=1,
        unit_price_cents=10000,
        total_price_cents=10000,
        created_at=utcnow() - timedelta(days=days_ago),
    )
    db.session.add(sale)
    db.session.commit()
    return sale


class TestPeriodSummary:

    @pytest.mark.parametrize("period", ["week", "month", "year", "WEEK"])
    def test_counts_current_period(self, sold, period):
        summary = reporting_service.period_summary(period)
        assert summary["period"] == period.lower()
        assert summary["revenue"] == "13.75"
        assert summary["revenue_cents"] == 1375
        assert summary["items"] == 5

    def test_excludes_sales_before_period_start(self, sold, cashier):
        _old_sale(sold[0], cashier, days_ago=400)
        summary = reporting_service.period_summary("year")
        assert summary["revenue_cents"] == 1375
        assert summary["items"] == 5

    def test_empty_store(self, app):
        summary = reporting_service.period_summary("month")
        assert summary["revenue"] == "0.00"
        assert summary["items"] == 0

    @pytest.mark.parametrize("period", ["day", "", None, "weekly"])
    def test_invalid_period(self, app, period):
        with pytest.raises(ValidationError, match="Invalid period"):
            reporting_service.period_summary(period)


def test_period_starts():
    now = datetime(2026, 10, 17, 15, 30)  # Saturday
    assert start_of_week(now) == datetime(2026, 10, 12)
    assert start_of_month(now) == datetime(2026, 10, 1)
    assert start_of_year(now) == datetime(2026, 1, 1)


def test_overall_summary(sold, cashier, owner):
    _old_sale(sold[0], cashier, days_ago=400)
    summary = reporting_service.overall_summary()
    assert summary == {
        "total_products": 3,
        "total_cashiers": 1,
        "revenue": "113.75",
        "revenue_cents": 11375,
        "orders": 3,
        "items": 6,
    }


class TestHeatmap:

    def test_groups_by_day(self, sold, cashier):
        _old_sale(sold[0], cashier, days_ago=2)
        rows = reporting_service.daily_heatmap(7)

        assert len(rows) == 2
        assert rows[0]["count"] == 1
        assert rows[0]["revenue"] == "100.00"
        today = rows[-1]
        assert today["date"] == utcnow().date().isoformat()
        assert today["count"] == 2
        assert today["revenue_cents"] == 1375

    def test_window_excludes_older_days(self, sold, cashier):
        _old_sale(sold[0], cashier, days_ago=30)
        assert len(reporting_service.daily_heatmap(7)) == 1
        assert len(reporting_service.daily_heatmap()) == 2

    def test_days_are_clamped(self, app):
        assert reporting_service.parse_days(None) == 90
        assert reporting_service.parse_days("10") == 10
        assert reporting_service.parse_days(5000) == 366
        assert reporting_service.parse_days(2 ** 64) == 366

    @pytest.mark.parametrize("days", ["0", "-1", "abc", "1.5"])
    def test_invalid_days(self, app, days):
        with pytest.raises(ValidationError):
            reporting_service.parse_days(days)


# =============================================================================
# INCLUSIVE BOUNDS ON RECORDED TIMESTAMPS
# =============================================================================


class TestTimestampBounds:

    def test_recorded_timestamp_has_bound_format(self, cashier_actor, product):
        ledger_service.record_sale(actor=cashier_actor, product_id=product.id, quantity=1)
        raw = db.session.execute(text("SELECT created_at FROM sales")).scalar()
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6}", raw)

    def test_sale_at_exact_bound_is_listed(self, owner_actor, cashier_actor, product):
        sale = ledger_service.record_sale(actor=cashier_actor, product_id=product.id, quantity=1)
        stamp = sale.created_at.isoformat()

        exact = sales_service.list_sales(actor=owner_actor, start=stamp, end=stamp)
        assert exact["count"] == 1
        assert exact["items"][0]["id"] == sale.id

        assert sales_service.list_sales(actor=owner_actor, start=stamp)["count"] == 1
        assert sales_service.list_sales(actor=owner_actor, end=stamp)["count"] == 1

    def test_period_summary_from_sale_instant(self, cashier_actor, product):
        sale = ledger_service.record_sale(actor=cashier_actor, product_id=product.id, quantity=2)
        summary = reporting_service.period_summary("week", now=sale.created_at)
        assert summary["items"] == 2
        assert summary["revenue_cents"] == 2000
