"""
Concurrency tests for the inventory ledger.

Each worker thread runs in its own app context (own session and
connection) against a file-backed SQLite database.
"""

import sqlite3
import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from shopledger import _engine_options, create_app
from shopledger.extensions import db
from shopledger.models import ActivityLogEntry, Product, Sale
from shopledger.permissions import Actor
from shopledger.services import auth_service, ledger_service
from shopledger.services.concurrency import NestedUnitError, TransientStoreError, run_with_retry
from shopledger.validation import InsufficientStockError


def _run_workers(app, target, count):
    results = []
    errors = []
    lock = threading.Lock()
    start = threading.Barrier(count)

    def worker(index):
        with app.app_context():
            try:
                start.wait()
                outcome = target(index)
                with lock:
                    results.append(outcome)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@pytest.mark.concurrency
def test_concurrent_sales_never_oversell(app, cashier_actor, product):
    product_id = product.id
    db.session.commit()

    def sell(_):
        return ledger_service.record_sale(actor=cashier_actor, product_id=product_id, quantity=1).id

    results, errors = _run_workers(app, sell, 10)

    assert len(results) == 5
    assert len(errors) == 5
    assert all(isinstance(e, InsufficientStockError) for e in errors), errors

    db.session.expire_all()
    assert db.session.get(Product, product_id).stock_quantity == 0
    assert db.session.query(Sale).count() == 5
    assert db.session.query(ActivityLogEntry).count() == 5


@pytest.mark.concurrency
def test_concurrent_sales_stock_accounting(app, cashier_actor, products):
    coffee_id = products[0].id
    db.session.commit()

    def sell(index):
        return ledger_service.record_sale(
            actor=cashier_actor, product_id=coffee_id, quantity=(index % 3) + 1,
        ).quantity

    results, errors = _run_workers(app, sell, 8)

    assert not errors
    db.session.expire_all()
    sold = db.session.query(db.func.sum(Sale.quantity)).scalar()
    assert sold == sum(results)
    assert db.session.get(Product, coffee_id).stock_quantity == 40 - sold


@pytest.mark.concurrency
def test_same_request_key_from_parallel_retries_sells_once(app, cashier_actor, product):
    product_id = product.id
    db.session.commit()

    def sell(_):
        return ledger_service.record_sale(
            actor=cashier_actor, product_id=product_id, quantity=1, request_key="tap-twice",
        ).id

    results, errors = _run_workers(app, sell, 4)

    assert not errors
    assert len(set(results)) == 1
    db.session.expire_all()
    assert db.session.get(Product, product_id).stock_quantity == 4
    assert db.session.query(Sale).count() == 1


@pytest.mark.concurrency
def test_held_write_lock_surfaces_transient_error(tmp_path):
    db_path = tmp_path / "locked.sqlite3"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{db_path}",
        'BCRYPT_ROUNDS': 4,
        'LEDGER_LOCK_TIMEOUT_MS': 100,
        'LEDGER_RETRY_ATTEMPTS': 2,
        'LEDGER_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        user = auth_service.create_cashier("slow@shop.test", "Password123!")
        actor = Actor(id=user.id, role=user.role)
        product = Product(name="Locked", price_cents=100, stock_quantity=3)
        db.session.add(product)
        db.session.commit()
        product_id = product.id

        blocker = sqlite3.connect(str(db_path))
        try:
            blocker.execute("BEGIN IMMEDIATE")
            with pytest.raises(TransientStoreError) as exc_info:
                ledger_service.record_sale(actor=actor, product_id=product_id, quantity=1)
            assert exc_info.value.retryable is True
        finally:
            blocker.rollback()
            blocker.close()

        db.session.expire_all()
        assert db.session.get(Product, product_id).stock_quantity == 3
        assert db.session.query(Sale).count() == 0

        db.session.remove()
        db.drop_all()
        db.engine.dispose()


# =============================================================================
# RETRY POLICY
# =============================================================================


class TestRunWithRetry:

    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("shopledger.services.concurrency.time.sleep", sleeps.append)
        return sleeps

    def test_retries_operational_error_then_succeeds(self, app, no_sleep):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE products", {}, Exception("database is locked"))
            return "done"

        assert run_with_retry(flaky, attempts=3, backoff_base=0.5) == "done"
        assert len(calls) == 3
        assert no_sleep == [0.5, 1.0]

    def test_exhausted_attempts_raise_transient_error(self, app):
        def always_stale():
            raise StaleDataError("version mismatch")

        with pytest.raises(TransientStoreError) as exc_info:
            run_with_retry(always_stale, attempts=2, backoff_base=0)
        assert isinstance(exc_info.value.__cause__, StaleDataError)

    def test_terminal_errors_are_not_retried(self, app):
        calls = []

        def terminal():
            calls.append(1)
            raise InsufficientStockError(product_id=1, requested=2, available=1)

        with pytest.raises(InsufficientStockError):
            run_with_retry(terminal, attempts=3, backoff_base=0)
        assert len(calls) == 1

    def test_nested_unit_is_not_retried(self, app, no_sleep):
        calls = []

        def nested():
            calls.append(1)
            raise NestedUnitError("session already has writes")

        with pytest.raises(NestedUnitError):
            run_with_retry(nested, attempts=3, backoff_base=0.5)
        assert len(calls) == 1
        assert no_sleep == []


# =============================================================================
# ENGINE OPTIONS
# =============================================================================


class TestEngineOptions:

    def test_sqlite_busy_timeout_follows_lock_timeout(self):
        options = _engine_options({
            "SQLALCHEMY_DATABASE_URI": "sqlite:///ledger.db",
            "LEDGER_LOCK_TIMEOUT_MS": 2500,
        })
        assert options["connect_args"] == {"timeout": 2.5, "check_same_thread": False}

    def test_postgresql_sessions_run_in_utc(self):
        options = _engine_options({
            "SQLALCHEMY_DATABASE_URI": "postgresql+psycopg2://pos@db/ledger",
            "LEDGER_LOCK_TIMEOUT_MS": 5000,
            "SQLALCHEMY_ENGINE_OPTIONS": {"pool_pre_ping": True},
        })
        assert options["connect_args"] == {"options": "-c timezone=UTC"}
        assert options["pool_pre_ping"] is True

    def test_explicit_connect_args_win(self):
        options = _engine_options({
            "SQLALCHEMY_DATABASE_URI": "postgresql://pos@db/ledger",
            "LEDGER_LOCK_TIMEOUT_MS": 5000,
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"options": "-c timezone=UTC -c statement_timeout=0"}},
        })
        assert options["connect_args"]["options"] == "-c timezone=UTC -c statement_timeout=0"

    def test_other_backends_untouched(self):
        options = _engine_options({
            "SQLALCHEMY_DATABASE_URI": "mysql://pos@db/ledger",
            "LEDGER_LOCK_TIMEOUT_MS": 5000,
        })
        assert options == {}

    def test_app_engine_gets_options(self, app):
        assert app.config["SQLALCHEMY_ENGINE_OPTIONS"]["connect_args"]["check_same_thread"] is False
