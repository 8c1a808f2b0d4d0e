# Overview: Flask API routes for the activity log (read-only, OWNER only).

from flask import Blueprint, request, jsonify

from ..services import audit_service
from ..decorators import require_auth, require_permission

activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity")


@activity_bp.get("")
@require_auth
@require_permission("VIEW_ACTIVITY")
def list_activity_route():
    """
    Most recent entries first.

    Query params:
    - limit: int (default 200, max 500)
    """
    limit = request.args.get("limit", type=int)
    items = audit_service.list_activity(limit)
    return jsonify({"items": items, "count": len(items)}), 200
