# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopledger/routes/products.py
"""
Product routes.

- Reads are open to OWNER and CASHIER
- Writes are OWNER only and go through ledger_service (one atomic unit each)
"""
from flask import Blueprint, request, g, current_app

from ..services import ledger_service
from ..services.products_service import list_products as list_products_service, get_product
from ..services.concurrency import TransientStoreError
from ..validation import (
    reject_unknown_fields,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission

PRODUCT_FIELDS = {"name", "price", "stock_quantity"}

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products():
    """List all products, newest first."""
    return list_products_service()


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    try:
        return get_product(product_id).to_dict()
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """Create a product. Body: name, price, stock_quantity."""
    try:
        payload = reject_unknown_fields(request.get_json(silent=True), PRODUCT_FIELDS)
        product = ledger_service.add_product(
            actor=g.actor,
            name=payload.get("name"),
            price=payload.get("price"),
            stock_quantity=payload.get("stock_quantity"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TransientStoreError as e:
        return {"error": str(e), "retryable": True}, 503
    except Exception:
        current_app.logger.exception("Failed to add product")
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    """Replace name, price and stock_quantity of a product."""
    try:
        payload = reject_unknown_fields(request.get_json(silent=True), PRODUCT_FIELDS)
        product = ledger_service.update_product(
            actor=g.actor,
            product_id=product_id,
            name=payload.get("name"),
            price=payload.get("price"),
            stock_quantity=payload.get("stock_quantity"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except TransientStoreError as e:
        return {"error": str(e), "retryable": True}, 503
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """Delete a product no sale references."""
    try:
        ledger_service.delete_product(actor=g.actor, product_id=product_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except TransientStoreError as e:
        return {"error": str(e), "retryable": True}, 503
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return {"error": "Internal server error"}, 500

    return {"ok": True}, 200
