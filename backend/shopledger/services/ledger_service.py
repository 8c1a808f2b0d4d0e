# Overview: Inventory ledger; every product/sale mutation and its audit entry as one atomic unit.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Sale
from ..models.activity import (
    ACTION_PRODUCT_ADD,
    ACTION_PRODUCT_DELETE,
    ACTION_PRODUCT_UPDATE,
    ACTION_SALE_RECORD,
)
from ..permissions import Actor
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    MAX_DB_INTEGER,
    MAX_STOCK_QUANTITY,
    format_cents,
    parse_int,
    parse_positive_int,
    parse_price_cents,
    parse_product_name,
    parse_request_key,
)
from .audit_service import append_activity
from .concurrency import begin_atomic, lock_for_update, run_with_retry

"""
Inventory ledger invariants (authoritative)

- Products and Sales change only through the functions in this module.
- Each operation is one atomic unit: the mutation and its activity entry
  commit together, or the unit is rolled back and nothing is visible.
- stock_quantity never goes negative. The conditional decrement
  (WHERE stock_quantity >= qty) is the authoritative check; the read taken
  before the unit opens only fails fast.
- Sales snapshot the product price at decrement time.
- Deletes write the PRODUCT_DELETE entry while the row still exists, then
  remove the row, in the same unit.
- Actors arrive already authorized by the route gate; no role checks here.
"""


def _require_actor(actor) -> Actor:
    if not isinstance(actor, Actor):
        raise ValidationError("actor is required")
    return actor


def _load_product(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter(Product.id == product_id)
    if lock:
        query = lock_for_update(query)
    else:
        query = query.populate_existing()
    return query.first()


def _find_sale_by_request_key(cashier_id: int, request_key: str) -> Sale | None:
    return (
        db.session.query(Sale)
        .filter(Sale.cashier_id == cashier_id, Sale.request_key == request_key)
        .first()
    )


def _product_details(name: str, price_cents: int, stock_quantity: int) -> dict:
    return {
        "name": name,
        "price": format_cents(price_cents),
        "stock_quantity": stock_quantity,
    }


def record_sale(
    *,
    actor: Actor,
    product_id,
    quantity,
    request_key: str | None = None,
) -> Sale:
    """
    Sell `quantity` units of a product.

    Atomically decrements stock, inserts the Sale (price snapshot) and appends
    a SALE_RECORD entry. Returns the persisted Sale.

    When request_key is given and this cashier already recorded a sale with
    it, that sale is returned and nothing new is written.

    Raises:
        ValidationError: product_id / quantity missing or non-positive
        NotFoundError: product does not exist
        InsufficientStockError: stock_quantity < quantity (stock unchanged)
        TransientStoreError: lock timeout or store failure after retries
    """
    actor = _require_actor(actor)
    product_id = parse_positive_int(product_id, "product_id")
    quantity = parse_int(quantity, "quantity", minimum=1, maximum=MAX_STOCK_QUANTITY)
    request_key = parse_request_key(request_key)

    if request_key is not None:
        existing = _find_sale_by_request_key(actor.id, request_key)
        if existing is not None:
            return existing

    # Fail fast before taking the write lock.
    product = _load_product(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if product.stock_quantity < quantity:
        raise InsufficientStockError(
            product_id=product_id,
            requested=quantity,
            available=product.stock_quantity,
        )

    def _op():
        begin_atomic()

        if request_key is not None:
            replay = _find_sale_by_request_key(actor.id, request_key)
            if replay is not None:
                db.session.rollback()
                return replay

        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(
                stock_quantity=Product.stock_quantity - quantity,
                version_id=Product.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = _load_product(product_id)
            if current is None:
                raise NotFoundError("Product not found")
            raise InsufficientStockError(
                product_id=product_id,
                requested=quantity,
                available=current.stock_quantity,
            )

        # Re-read inside the unit: the price snapshot is the price the decrement saw.
        sold = _load_product(product_id)
        unit_price_cents = sold.price_cents
        total_price_cents = unit_price_cents * quantity
        if total_price_cents > MAX_DB_INTEGER:
            raise ValidationError(
                f"total_price cannot exceed {format_cents(MAX_DB_INTEGER)}; split the sale"
            )

        sale = Sale(
            product_id=sold.id,
            cashier_id=actor.id,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
            total_price_cents=total_price_cents,
            request_key=request_key,
        )
        db.session.add(sale)
        db.session.flush()

        append_activity(
            actor=actor,
            action=ACTION_SALE_RECORD,
            product_id=sold.id,
            details={
                "sale_id": sale.id,
                "quantity": quantity,
                "unit_price": format_cents(unit_price_cents),
                "total_price": format_cents(total_price_cents),
            },
        )

        db.session.commit()
        return sale

    try:
        sale = run_with_retry(_op)
    except IntegrityError:
        # Same key committed concurrently by another request.
        if request_key is None:
            raise
        existing = _find_sale_by_request_key(actor.id, request_key)
        if existing is None:
            raise
        return existing

    current_app.logger.info(
        "Sale %s recorded: product=%s quantity=%s total=%s actor=%s",
        sale.id, sale.product_id, sale.quantity, format_cents(sale.total_price_cents), actor.id,
    )
    return sale


def add_product(*, actor: Actor, name, price, stock_quantity) -> Product:
    """Insert a product and its PRODUCT_ADD entry in one unit."""
    actor = _require_actor(actor)
    name = parse_product_name(name)
    price_cents = parse_price_cents(price)
    stock_quantity = parse_int(stock_quantity, "stock_quantity", minimum=0, maximum=MAX_STOCK_QUANTITY)

    def _op():
        begin_atomic()

        product = Product(name=name, price_cents=price_cents, stock_quantity=stock_quantity)
        db.session.add(product)
        db.session.flush()  # ensure product.id exists before audit append

        append_activity(
            actor=actor,
            action=ACTION_PRODUCT_ADD,
            product_id=product.id,
            details=_product_details(name, price_cents, stock_quantity),
        )

        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Product %s added by actor=%s", product.id, actor.id)
    return product


def update_product(*, actor: Actor, product_id, name, price, stock_quantity) -> Product:
    """
    Replace name, price and stock_quantity, bump updated_at, append PRODUCT_UPDATE.

    Raises NotFoundError (and writes nothing) when the product does not exist.
    """
    actor = _require_actor(actor)
    product_id = parse_positive_int(product_id, "product_id")
    name = parse_product_name(name)
    price_cents = parse_price_cents(price)
    stock_quantity = parse_int(stock_quantity, "stock_quantity", minimum=0, maximum=MAX_STOCK_QUANTITY)

    def _op():
        begin_atomic()

        product = _load_product(product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found")

        product.name = name
        product.price_cents = price_cents
        product.stock_quantity = stock_quantity
        product.updated_at = utcnow()
        db.session.flush()  # version_id check happens here

        append_activity(
            actor=actor,
            action=ACTION_PRODUCT_UPDATE,
            product_id=product.id,
            details=_product_details(name, price_cents, stock_quantity),
        )

        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Product %s updated by actor=%s", product.id, actor.id)
    return product


def delete_product(*, actor: Actor, product_id) -> None:
    """
    Delete a product that no sale references.

    Order inside the unit: referential check, PRODUCT_DELETE entry (its
    product FK is valid because the row still exists), then the delete.
    The database sets the entry's product_id to NULL when the row goes;
    the id is kept in the entry details.

    Raises:
        ConflictError: at least one sale references the product
        NotFoundError: product does not exist
    """
    actor = _require_actor(actor)
    product_id = parse_positive_int(product_id, "product_id")

    def _op():
        begin_atomic()

        referenced = (
            db.session.query(Sale.id).filter(Sale.product_id == product_id).first()
        )
        if referenced is not None:
            raise ConflictError("Cannot delete product: existing sales reference this product")

        product = _load_product(product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found")

        append_activity(
            actor=actor,
            action=ACTION_PRODUCT_DELETE,
            product_id=product.id,
            details={"product_id": product.id, "name": product.name},
        )

        db.session.delete(product)
        try:
            db.session.flush()
        except IntegrityError as exc:
            # FK RESTRICT from a sale that slipped in after the check.
            raise ConflictError(
                "Cannot delete product: existing sales reference this product"
            ) from exc

        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Product %s deleted by actor=%s", product_id, actor.id)
