from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_permission("VIEW_REPORTS")
def summary_report():
    period = request.args.get("period")

    try:
        if period:
            return jsonify(reporting_service.period_summary(period)), 200
        return jsonify(reporting_service.overall_summary()), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/heatmap")
@require_auth
@require_permission("VIEW_REPORTS")
def heatmap_report():
    try:
        rows = reporting_service.daily_heatmap(request.args.get("days"))
        return jsonify(rows), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
