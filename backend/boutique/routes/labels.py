# backend/boutique/routes/labels.py
from flask import Blueprint, current_app, jsonify, request

from ..services import catalog_service, label_service, settings_service
from ..validation import ValidationError, parse_int


labels_bp = Blueprint("labels", __name__, url_prefix="/api/labels")


@labels_bp.post("/print")
def print_labels():
    """
    Render a printable label sheet.

    Body: {"selections": [{"stock_id", "color", "size", "copies"}],
           "options": {...}, "auto_sequence": 1}
    """
    data = request.get_json(silent=True) or {}
    try:
        options = label_service.LabelOptions.from_payload(data.get("options"))
        auto_sequence = parse_int(data.get("auto_sequence", 1), "auto_sequence")
        settings = settings_service.get_business_settings()
        labels = label_service.build_labels(
            catalog_service.stock_snapshot(),
            data.get("selections"),
            gs1_prefix=settings.gs1_company_prefix,
            auto_sequence=auto_sequence,
        )
        html = label_service.render_label_sheet(labels, options)
        return html, 200, {"Content-Type": "text/html; charset=utf-8"}
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to render labels")
        return jsonify({"success": False, "error": "Failed to render labels"}), 500
