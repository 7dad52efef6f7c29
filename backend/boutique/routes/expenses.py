# backend/boutique/routes/expenses.py
"""
Expense endpoints.

One collection URL serves expenses and their lookup lists:
- GET    ?type=categories|spendingMenus lists lookups, otherwise expenses
- POST   body.type=category|spendingMenu adds a lookup, otherwise an expense
- PUT    ?id= updates an expense
- DELETE ?id=[&type=category|spendingMenu]
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import expense_service
from ..time_utils import parse_iso_date
from ..validation import ConflictError, NotFoundError, ValidationError


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")

LIST_TYPES = {"categories": "category", "spendingMenus": "spendingMenu"}


def _date_arg(name: str):
    value = request.args.get(name)
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date")


@expenses_bp.get("")
def list_expenses_route():
    list_type = request.args.get("type")
    try:
        if list_type:
            if list_type not in LIST_TYPES:
                return jsonify({"success": False, "error": "Invalid type"}), 400
            rows = expense_service.list_lookup(LIST_TYPES[list_type])
            return jsonify({"success": True, "data": [r.to_dict() for r in rows]}), 200

        expense_id = request.args.get("id", type=int)
        if expense_id is not None:
            expense = expense_service.get_expense(expense_id)
            return jsonify({"success": True, "data": expense.to_dict()}), 200

        result = expense_service.list_expenses(
            start=_date_arg("start"),
            end=_date_arg("end"),
            currency=request.args.get("currency"),
            category_id=request.args.get("category_id", type=int),
            search=request.args.get("search"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        body = {
            "success": True,
            "data": [e.to_dict() for e in result["items"]],
            "totals": result["totals"],
        }
        if "pagination" in result:
            body["pagination"] = result["pagination"]
        return jsonify(body), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch expenses")
        return jsonify({"success": False, "error": "Failed to fetch expenses"}), 500


@expenses_bp.post("")
def create_expense_route():
    data = request.get_json(silent=True) or {}
    kind = data.pop("type", None)
    try:
        if kind in ("category", "spendingMenu"):
            row = expense_service.add_lookup(kind, data.get("name"))
            return jsonify({"success": True, "data": row.to_dict()}), 201
        if kind is not None:
            return jsonify({"success": False, "error": "Invalid type"}), 400

        expense = expense_service.create_expense(data)
        return jsonify({"success": True, "data": expense.to_dict()}), 201
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"success": False, "error": "Failed to create expense"}), 500


@expenses_bp.put("")
def update_expense_route():
    expense_id = request.args.get("id", type=int)
    if expense_id is None:
        return jsonify({"success": False, "error": "Expense ID is required"}), 400
    try:
        data = request.get_json(silent=True) or {}
        data.pop("id", None)
        expense = expense_service.update_expense(expense_id, data)
        return jsonify({"success": True, "data": expense.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"success": False, "error": "Failed to update expense"}), 500


@expenses_bp.delete("")
def delete_expense_route():
    row_id = request.args.get("id", type=int)
    kind = request.args.get("type")
    if row_id is None:
        return jsonify({"success": False, "error": "ID is required"}), 400
    try:
        if kind in ("category", "spendingMenu"):
            expense_service.delete_lookup(kind, row_id)
        elif kind is None:
            expense_service.delete_expense(row_id)
        else:
            return jsonify({"success": False, "error": "Invalid type"}), 400
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"success": False, "error": "Failed to delete expense"}), 500
