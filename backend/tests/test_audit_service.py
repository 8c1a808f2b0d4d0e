"""Activity log reads and append rules."""

import pytest

from shopledger.extensions import db
from shopledger.models import ActivityLogEntry
from shopledger.services import audit_service, ledger_service
from shopledger.validation import ValidationError


def test_list_activity_newest_first_with_names(owner_actor, cashier_actor):
    tea = ledger_service.add_product(actor=owner_actor, name="Tea", price="2.00", stock_quantity=5)
    ledger_service.record_sale(actor=cashier_actor, product_id=tea.id, quantity=2)
    ledger_service.update_product(
        actor=owner_actor, product_id=tea.id, name="Green Tea", price="2.50", stock_quantity=3,
    )

    items = audit_service.list_activity()

    assert [i["action"] for i in items] == ["PRODUCT_UPDATE", "SALE_RECORD", "PRODUCT_ADD"]
    sale_item = items[1]
    assert sale_item["actor_email"] == "cashier@shop.test"
    assert sale_item["actor_name"] == "Cal Cashier"
    assert sale_item["actor_role"] == "CASHIER"
    # Current product name, not the one at write time.
    assert sale_item["product_name"] == "Green Tea"
    assert sale_item["created_at"].endswith("Z")


def test_deleted_product_entries_survive(owner_actor):
    scone = ledger_service.add_product(actor=owner_actor, name="Scone", price=1, stock_quantity=1)
    ledger_service.delete_product(actor=owner_actor, product_id=scone.id)

    items = audit_service.list_activity()

    assert [i["action"] for i in items] == ["PRODUCT_DELETE", "PRODUCT_ADD"]
    assert items[0]["product_id"] is None
    assert items[0]["product_name"] is None
    assert items[0]["details"]["name"] == "Scone"


def test_limit_is_clamped(app, owner_actor):
    for i in range(4):
        ledger_service.add_product(actor=owner_actor, name=f"P{i}", price=1, stock_quantity=1)

    assert len(audit_service.list_activity(2)) == 2
    assert len(audit_service.list_activity(0)) == 1
    assert len(audit_service.list_activity()) == 4

    app.config["ACTIVITY_MAX_LIMIT"] = 3
    assert len(audit_service.list_activity(1000)) == 3


def test_unknown_action_rejected(owner_actor):
    with pytest.raises(ValidationError):
        audit_service.append_activity(actor=owner_actor, action="PRICE_HACK", product_id=None)
    db.session.rollback()
    assert db.session.query(ActivityLogEntry).count() == 0
