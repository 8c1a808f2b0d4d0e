# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/shopledger/routes/sales.py
"""Sales API routes with role enforcement"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ledger_service, sales_service
from ..services.concurrency import TransientStoreError
from ..validation import (
    reject_unknown_fields,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
)
from ..decorators import require_auth, require_permission


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission("RECORD_SALE")
def record_sale_route():
    """
    Record a sale.

    Body: product_id, quantity.
    Optional Idempotency-Key header: a retried request with the same key
    returns the original sale instead of selling twice.
    """
    try:
        data = reject_unknown_fields(request.get_json(silent=True), {"product_id", "quantity"})
        product_id = data.get("product_id")
        quantity = data.get("quantity")

        if not product_id or not quantity:
            return jsonify({"error": "product_id and positive quantity required"}), 400

        sale = ledger_service.record_sale(
            actor=g.actor,
            product_id=product_id,
            quantity=quantity,
            request_key=request.headers.get("Idempotency-Key"),
        )

        return jsonify({"message": "Sale recorded", "sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 409
    except TransientStoreError as e:
        return jsonify({"error": str(e), "retryable": True}), 503
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    """
    List sales. Cashiers only see their own.

    Query params:
    - from: ISO-8601 lower bound (inclusive)
    - to: ISO-8601 upper bound (inclusive)
    """
    try:
        result = sales_service.list_sales(
            actor=g.actor,
            start=request.args.get("from"),
            end=request.args.get("to"),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500
