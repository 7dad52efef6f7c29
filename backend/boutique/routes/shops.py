# backend/boutique/routes/shops.py
"""Shop management endpoints."""

from flask import Blueprint, current_app, jsonify, request

from ..services import shop_service
from ..validation import ConflictError, NotFoundError, ValidationError


shops_bp = Blueprint("shops", __name__, url_prefix="/api/shops")


@shops_bp.get("")
def list_shops_route():
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    shops = shop_service.list_shops(include_inactive=include_inactive)
    return jsonify({"success": True, "data": [s.to_dict() for s in shops]}), 200


@shops_bp.post("")
def create_shop_route():
    try:
        shop = shop_service.create_shop(request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": shop.to_dict()}), 201
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create shop")
        return jsonify({"success": False, "error": "Failed to create shop"}), 500


@shops_bp.put("/<int:shop_id>")
def update_shop_route(shop_id: int):
    try:
        shop = shop_service.update_shop(shop_id, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": shop.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update shop")
        return jsonify({"success": False, "error": "Failed to update shop"}), 500


@shops_bp.delete("/<int:shop_id>")
def delete_shop_route(shop_id: int):
    try:
        shop_service.delete_shop(shop_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete shop")
        return jsonify({"success": False, "error": "Failed to delete shop"}), 500
