# Overview: Read-only product queries. Mutations live in ledger_service.

from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..validation import NotFoundError, parse_positive_int


def list_products() -> dict:
    """All products, newest first."""
    products = (
        db.session.query(Product)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }


def get_product(product_id) -> Product:
    product_id = parse_positive_int(product_id, "product_id")
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product
