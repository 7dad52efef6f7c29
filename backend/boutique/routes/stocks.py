# backend/boutique/routes/stocks.py
"""Stock group catalog endpoints."""

from flask import Blueprint, current_app, jsonify, request

from ..services import catalog_service
from ..validation import NotFoundError, ValidationError


stocks_bp = Blueprint("stocks", __name__, url_prefix="/api/stocks")


@stocks_bp.get("")
def list_stocks_route():
    """
    List stock groups.

    Query: shop, category, search, barcode, recent=true, limit
    """
    try:
        stocks = catalog_service.list_stocks(
            shop=request.args.get("shop"),
            category=request.args.get("category"),
            search=request.args.get("search"),
            barcode=request.args.get("barcode"),
            recent=request.args.get("recent", "false").lower() == "true",
            limit=request.args.get("limit", type=int),
        )
        return jsonify({"success": True, "data": [s.to_dict() for s in stocks]}), 200
    except Exception:
        current_app.logger.exception("Failed to list stocks")
        return jsonify({"success": False, "error": "Failed to fetch stocks"}), 500


@stocks_bp.post("")
def create_stock_route():
    try:
        data = request.get_json(silent=True) or {}
        stock = catalog_service.create_stock(data)
        return jsonify({"success": True, "data": stock.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create stock")
        return jsonify({"success": False, "error": "Failed to create stock"}), 500


@stocks_bp.get("/low")
def low_stock_route():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    rows = catalog_service.low_stock(threshold)
    return jsonify({"success": True, "data": rows, "threshold": threshold}), 200


@stocks_bp.get("/<int:stock_id>")
def get_stock_route(stock_id: int):
    try:
        stock = catalog_service.get_stock(stock_id)
        return jsonify({"success": True, "data": stock.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404


@stocks_bp.put("/<int:stock_id>")
def update_stock_route(stock_id: int):
    try:
        data = request.get_json(silent=True) or {}
        stock = catalog_service.update_stock(stock_id, data)
        return jsonify({"success": True, "data": stock.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update stock")
        return jsonify({"success": False, "error": "Failed to update stock"}), 500


@stocks_bp.delete("/<int:stock_id>")
def delete_stock_route(stock_id: int):
    try:
        catalog_service.delete_stock(stock_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete stock")
        return jsonify({"success": False, "error": "Failed to delete stock"}), 500
