from flask import Blueprint, current_app, jsonify, request

from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
def summary_report():
    """
    Revenue/profit/expense summary.

    Query: range=today|7d|30d|90d|1y|all|custom, start/end (custom), shop_id,
    low_stock_threshold
    """
    threshold = request.args.get("low_stock_threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]

    try:
        report = reporting_service.sales_report(
            range_key=request.args.get("range", "30d"),
            start=request.args.get("start"),
            end=request.args.get("end"),
            shop_id=request.args.get("shop_id", type=int),
            low_stock_threshold=threshold,
        )
        return jsonify({"success": True, "data": report}), 200
    except reporting_service.ReportError as exc:
        return jsonify({"success": False, "error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build report")
        return jsonify({"success": False, "error": "Failed to build report"}), 500
