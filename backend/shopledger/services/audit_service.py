# Overview: Audit recorder; appends activity entries inside the caller's transaction and reads them back.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import ActivityLogEntry, Product, User
from ..models.activity import ACTIONS
from ..permissions import Actor
from ..validation import ValidationError

"""
Activity log invariants

- Append-only: nothing here updates or deletes an existing entry.
- Entries are written inside the same DB transaction as the mutation they
  document; a rollback of that mutation removes the entry with it.
- actor_role is a snapshot of the role at write time.
- product_id is nulled by the database when the product is deleted.
- Read order is created_at desc (id desc breaks ties).
"""


def append_activity(
    *,
    actor: Actor,
    action: str,
    product_id: int | None,
    details: dict | None = None,
) -> ActivityLogEntry:
    """
    Append one entry to the current transaction. Does not commit.

    Called by ledger_service as the last step of a unit, or before the row
    it references is deleted.
    """
    if action not in ACTIONS:
        raise ValidationError(f"Unknown activity action: {action}")

    entry = ActivityLogEntry(
        actor_id=actor.id,
        actor_role=actor.role,
        action=action,
        product_id=product_id,
        details=dict(details or {}),
    )
    db.session.add(entry)
    db.session.flush()  # FK checks run now, while the referenced product still exists
    return entry


def clamp_limit(limit: int | None) -> int:
    default = int(current_app.config.get("ACTIVITY_DEFAULT_LIMIT", 200))
    maximum = int(current_app.config.get("ACTIVITY_MAX_LIMIT", 500))
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


def list_activity(limit: int | None = None) -> list[dict]:
    """
    Most recent entries first, capped at ACTIVITY_MAX_LIMIT regardless of the
    requested limit. Joined with actor and product names for display.
    """
    n = clamp_limit(limit)

    rows = (
        db.session.query(
            ActivityLogEntry,
            User.email.label("actor_email"),
            User.name.label("actor_name"),
            Product.name.label("product_name"),
        )
        .outerjoin(User, User.id == ActivityLogEntry.actor_id)
        .outerjoin(Product, Product.id == ActivityLogEntry.product_id)
        .order_by(ActivityLogEntry.created_at.desc(), ActivityLogEntry.id.desc())
        .limit(n)
        .all()
    )

    items = []
    for entry, actor_email, name, product_name in rows:
        item = entry.to_dict()
        item["actor_email"] = actor_email
        item["actor_name"] = _display_name(name, actor_email)
        item["product_name"] = product_name
        items.append(item)
    return items


def _display_name(name: str | None, email: str | None) -> str | None:
    if name and name.strip():
        return name.strip()
    if email:
        return email.split("@")[0]
    return None
