# Overview: Read-only sale listing. Sales are written only by ledger_service.record_sale.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Product, Sale, User
from ..permissions import Actor, ROLE_CASHIER
from ..validation import ValidationError
from ..time_utils import parse_iso_datetime


def _parse_bound(value: str | None, field: str) -> datetime | None:
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")


def list_sales(*, actor: Actor, start: str | None = None, end: str | None = None) -> dict:
    """
    Sales visible to the actor, newest first.

    Cashiers see only the sales they recorded; owners see every sale.
    start/end are inclusive ISO-8601 bounds on created_at.
    """
    start_dt = _parse_bound(start, "from")
    end_dt = _parse_bound(end, "to")
    limit = int(current_app.config.get("SALES_LIST_LIMIT", 500))

    query = (
        db.session.query(
            Sale,
            Product.name.label("product_name"),
            User.email.label("cashier_email"),
            User.name.label("cashier_name"),
        )
        .outerjoin(Product, Product.id == Sale.product_id)
        .outerjoin(User, User.id == Sale.cashier_id)
    )

    if actor.role == ROLE_CASHIER:
        query = query.filter(Sale.cashier_id == actor.id)
    if start_dt:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt:
        query = query.filter(Sale.created_at <= end_dt)

    rows = (
        query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )

    items = []
    for sale, product_name, cashier_email, cashier_name in rows:
        item = sale.to_dict()
        item["product_name"] = product_name or ""
        item["cashier_email"] = cashier_email or ""
        item["cashier_name"] = (cashier_name or "").strip() or (cashier_email or "").split("@")[0]
        items.append(item)

    return {"items": items, "count": len(items)}
