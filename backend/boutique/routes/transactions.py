# backend/boutique/routes/transactions.py
"""Transaction history, refunds, cancellation and status updates."""

from flask import Blueprint, current_app, jsonify, request

from ..services import reporting_service, transaction_service
from ..services.transaction_service import TransactionError
from ..time_utils import end_of_day, parse_iso_date, start_of_day
from ..validation import NotFoundError, ValidationError


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _window_args():
    try:
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
    except ValueError:
        raise ValidationError("start/end must be YYYY-MM-DD dates")
    return (
        start_of_day(start) if start else None,
        end_of_day(end) if end else None,
    )


@transactions_bp.get("")
def list_transactions_route():
    try:
        start, end = _window_args()
        txns = transaction_service.list_transactions(
            start=start,
            end=end,
            status=request.args.get("status"),
            shop_id=request.args.get("shop_id", type=int),
            payment_method=request.args.get("payment_method"),
            limit=request.args.get("limit", type=int),
        )
        return jsonify({"success": True, "data": [t.to_dict() for t in txns]}), 200
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify({"success": False, "error": "Failed to fetch transactions"}), 500


@transactions_bp.get("/summary")
def transaction_summary_route():
    try:
        start, end = _window_args()
        txns = transaction_service.list_transactions(
            start=start,
            end=end,
            shop_id=request.args.get("shop_id", type=int),
        )
        summary = reporting_service.transaction_summary(t.to_dict() for t in txns)
        return jsonify({"success": True, "data": summary}), 200
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400


@transactions_bp.get("/<identifier>")
def get_transaction_route(identifier: str):
    try:
        txn = transaction_service.get_transaction(identifier)
        return jsonify({"success": True, "data": txn.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404


@transactions_bp.post("/<identifier>/refund")
def refund_route(identifier: str):
    """Body: {"items": [{"item_index", "quantity"}], "reason"?, "processed_by"?}"""
    data = request.get_json(silent=True) or {}
    try:
        refund = transaction_service.process_refund(
            identifier,
            data.get("items"),
            reason=data.get("reason"),
            processed_by=data.get("processed_by"),
        )
        txn = transaction_service.get_transaction(identifier)
        return jsonify({"success": True, "data": {"refund": refund.to_dict(), "transaction": txn.to_dict()}}), 201
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except TransactionError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to process refund")
        return jsonify({"success": False, "error": "Internal server error"}), 500


@transactions_bp.post("/<identifier>/cancel")
def cancel_route(identifier: str):
    data = request.get_json(silent=True) or {}
    try:
        txn = transaction_service.cancel_transaction(
            identifier,
            reason=data.get("reason"),
            cancelled_by=data.get("cancelled_by"),
        )
        return jsonify({"success": True, "data": txn.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except TransactionError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to cancel transaction")
        return jsonify({"success": False, "error": "Internal server error"}), 500


@transactions_bp.put("/<identifier>/status")
def update_status_route(identifier: str):
    data = request.get_json(silent=True) or {}
    try:
        txn = transaction_service.update_transaction_status(identifier, data.get("status"))
        return jsonify({"success": True, "data": txn.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except TransactionError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update transaction status")
        return jsonify({"success": False, "error": "Internal server error"}), 500
