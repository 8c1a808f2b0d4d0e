from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ACTION_PRODUCT_ADD = "PRODUCT_ADD"
ACTION_PRODUCT_UPDATE = "PRODUCT_UPDATE"
ACTION_PRODUCT_DELETE = "PRODUCT_DELETE"
ACTION_SALE_RECORD = "SALE_RECORD"
ACTIONS = (ACTION_PRODUCT_ADD, ACTION_PRODUCT_UPDATE, ACTION_PRODUCT_DELETE, ACTION_SALE_RECORD)


class ActivityLogEntry(db.Model):
    """
    Append-only audit fact.

    actor_role is a snapshot taken when the entry is written. product_id is
    SET NULL when the product is deleted; the entry itself is never removed.
    created_at is the canonical audit order.
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.CheckConstraint("actor_role IN ('OWNER', 'CASHIER')", name="ck_activity_logs_actor_role"),
        db.CheckConstraint(
            "action IN ('PRODUCT_ADD', 'PRODUCT_UPDATE', 'PRODUCT_DELETE', 'SALE_RECORD')",
            name="ck_activity_logs_action",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    actor_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    actor_role = db.Column(db.String(16), nullable=False)
    action = db.Column(db.String(32), nullable=False)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    details = db.Column(db.JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityLogEntry id={self.id} action={self.action} product_id={self.product_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "action": self.action,
            "product_id": self.product_id,
            "details": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }
