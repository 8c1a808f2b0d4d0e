# Overview: Flask API routes for cashier account management (OWNER only).

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_permission


cashiers_bp = Blueprint("cashiers", __name__, url_prefix="/api/cashiers")


@cashiers_bp.get("")
@require_auth
@require_permission("MANAGE_CASHIERS")
def list_cashiers_route():
    cashiers = auth_service.list_cashiers()
    return jsonify({"items": [u.to_dict() for u in cashiers], "count": len(cashiers)}), 200


@cashiers_bp.post("")
@require_auth
@require_permission("MANAGE_CASHIERS")
def create_cashier_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.create_cashier(email, password, data.get("name"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create cashier")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Cashier created", "user": user.to_dict()}), 201
