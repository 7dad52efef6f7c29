# backend/boutique/routes/customers.py
"""Customer records: CRUD, stats and purchase history."""

from flask import Blueprint, current_app, jsonify, request

from ..services import customer_service, transaction_service
from ..validation import ConflictError, NotFoundError, ValidationError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers_route():
    """Query: customer_type, search (name or email)."""
    try:
        customers = customer_service.list_customers(
            customer_type=request.args.get("customer_type") or None,
            search=request.args.get("search"),
        )
        return jsonify({"success": True, "data": [c.to_dict() for c in customers], "total": len(customers)}), 200
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"success": False, "error": "Failed to fetch customers"}), 500


@customers_bp.get("/stats")
def customer_stats_route():
    try:
        return jsonify({"success": True, "data": customer_service.customer_stats()}), 200
    except Exception:
        current_app.logger.exception("Failed to compute customer stats")
        return jsonify({"success": False, "error": "Failed to fetch customer statistics"}), 500


@customers_bp.post("")
def create_customer_route():
    try:
        customer = customer_service.create_customer(request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": customer.to_dict()}), 201
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"success": False, "error": "Failed to create customer"}), 500


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
        return jsonify({"success": True, "data": customer.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404


@customers_bp.get("/<int:customer_id>/transactions")
def customer_transactions_route(customer_id: int):
    try:
        customer_service.get_customer(customer_id)
        txns = transaction_service.list_transactions(customer_id=customer_id)
        return jsonify({"success": True, "data": [t.to_dict() for t in txns]}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list customer transactions")
        return jsonify({"success": False, "error": "Failed to fetch customer transactions"}), 500


@customers_bp.put("/<int:customer_id>")
def update_customer_route(customer_id: int):
    try:
        customer = customer_service.update_customer(customer_id, request.get_json(silent=True) or {})
        return jsonify({"success": True, "data": customer.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"success": False, "error": "Failed to update customer"}), 500


@customers_bp.delete("/<int:customer_id>")
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete customer")
        return jsonify({"success": False, "error": "Failed to delete customer"}), 500
