# backend/boutique/routes/exports.py
"""CSV downloads."""

from flask import Blueprint, Response, current_app, jsonify, request

from ..services import (
    catalog_service,
    expense_service,
    export_service,
    reporting_service,
    settings_service,
    transaction_service,
)
from ..time_utils import utcnow
from ..validation import ValidationError


exports_bp = Blueprint("exports", __name__, url_prefix="/api/exports")


def _csv_response(content: str, name: str) -> Response:
    filename = f"{name}-{utcnow().strftime('%Y-%m-%d')}.csv"
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _include_bom() -> bool:
    value = request.args.get("bom")
    if value is None:
        return bool(current_app.config["CSV_INCLUDE_BOM"])
    return value.lower() == "true"


@exports_bp.get("/expenses")
def export_expenses():
    try:
        window = reporting_service.resolve_window(
            request.args.get("range", "all"), request.args.get("start"), request.args.get("end")
        )
        result = expense_service.list_expenses(
            start=window.start.date() if window.start else None,
            end=window.end.date() if window.end else None,
            currency=request.args.get("currency"),
            category_id=request.args.get("category_id", type=int),
            search=request.args.get("search"),
        )
        content = export_service.expenses_csv(
            [e.to_dict() for e in result["items"]], include_bom=_include_bom()
        )
        return _csv_response(content, "expenses")
    except (reporting_service.ReportError, ValidationError) as e:
        return jsonify({"success": False, "error": str(e)}), 400


@exports_bp.get("/inventory")
def export_inventory():
    stocks = catalog_service.list_stocks(shop=request.args.get("shop"))
    content = export_service.inventory_csv([s.to_dict() for s in stocks], include_bom=_include_bom())
    return _csv_response(content, "inventory")


@exports_bp.get("/transactions")
def export_transactions():
    try:
        window = reporting_service.resolve_window(
            request.args.get("range", "all"), request.args.get("start"), request.args.get("end")
        )
        txns = transaction_service.list_transactions(
            start=window.start,
            end=window.end,
            status=request.args.get("status"),
            shop_id=request.args.get("shop_id", type=int),
        )
        content = export_service.transactions_csv(
            [t.to_dict() for t in txns],
            include_bom=_include_bom(),
            base_currency=settings_service.get_business_settings().default_currency,
        )
        return _csv_response(content, "sales-report")
    except reporting_service.ReportError as e:
        return jsonify({"success": False, "error": str(e)}), 400
