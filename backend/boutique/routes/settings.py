# backend/boutique/routes/settings.py
from flask import Blueprint, current_app, jsonify, request

from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings_route():
    settings = settings_service.get_business_settings()
    return jsonify({"success": True, "data": settings_service.settings_payload(settings)}), 200


@settings_bp.put("")
def update_settings_route():
    try:
        settings = settings_service.update_business_settings(request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": settings_service.settings_payload(settings)}), 200
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"success": False, "error": "Failed to update settings"}), 500
