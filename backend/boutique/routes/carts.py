# backend/boutique/routes/carts.py
"""
Per-user cart endpoints.

Every request loads the saved cart against a fresh inventory snapshot,
applies one operation, saves the cart and returns it with its totals.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import cart_service, customer_service, settings_service, transaction_service
from ..services.cart_service import CartError
from ..services.inventory_service import InventoryStore
from ..services.transaction_service import TransactionError
from ..validation import NotFoundError, ValidationError, parse_int


carts_bp = Blueprint("carts", __name__, url_prefix="/api/carts")


def _cart_payload(cart, extra: dict | None = None) -> dict:
    payload = {
        "cart": cart.to_dict(),
        "totals": cart.compute_totals().to_dict(),
        "adjustments": [a.to_dict() for a in cart.adjustments],
    }
    if isinstance(extra, dict):
        payload.update(extra)
    return payload


def _run(user_id: str, action, failure: str, status: int = 200):
    try:
        config = settings_service.get_pricing_config()
        cart = cart_service.load_cart(user_id, config, inventory=InventoryStore.from_database())
        extra = action(cart)
        cart_service.save_cart(user_id, cart)
        return jsonify({"success": True, "data": _cart_payload(cart, extra)}), status
    except CartError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception(failure)
        return jsonify({"success": False, "error": "Internal server error"}), 500


@carts_bp.get("/<user_id>")
def get_cart_route(user_id: str):
    return _run(user_id, lambda cart: None, "Failed to load cart")


@carts_bp.delete("/<user_id>")
def clear_cart_route(user_id: str):
    """Empty the cart and return its stock to inventory."""
    return _run(user_id, lambda cart: cart.clear(), "Failed to clear cart")


@carts_bp.post("/<user_id>/items")
def add_item_route(user_id: str):
    data = request.get_json(silent=True) or {}

    def action(cart):
        item = cart.add_item(data.get("stock_id"), data.get("color"), data.get("size"), data.get("quantity", 1))
        return {"item": item.to_dict()}

    return _run(user_id, action, "Failed to add cart item", status=201)


@carts_bp.put("/<user_id>/items/<item_id>")
def update_item_route(user_id: str, item_id: str):
    data = request.get_json(silent=True) or {}

    def action(cart):
        if "quantity" not in data:
            raise ValidationError("quantity is required")
        return {"item": cart.update_quantity(item_id, data["quantity"]).to_dict()}

    return _run(user_id, action, "Failed to update cart item")


@carts_bp.delete("/<user_id>/items/<item_id>")
def remove_item_route(user_id: str, item_id: str):
    return _run(user_id, lambda cart: {"removed": cart.remove_item(item_id).to_dict()}, "Failed to remove cart item")


@carts_bp.put("/<user_id>/discount")
def apply_cart_discount_route(user_id: str):
    """Body: {"percent": p} or {"amount": a} (amount is stored as a percentage)."""
    data = request.get_json(silent=True) or {}

    def action(cart):
        if "percent" in data:
            cart.apply_cart_discount_percent(data["percent"])
        elif "amount" in data:
            cart.apply_cart_discount_amount(data["amount"])
        else:
            raise ValidationError("percent or amount is required")

    return _run(user_id, action, "Failed to apply cart discount")


@carts_bp.delete("/<user_id>/discount")
def remove_cart_discount_route(user_id: str):
    return _run(user_id, lambda cart: cart.remove_cart_discount(), "Failed to remove cart discount")


@carts_bp.put("/<user_id>/groups/<path:group_name>/discount")
def apply_group_discount_route(user_id: str, group_name: str):
    data = request.get_json(silent=True) or {}
    return _run(
        user_id,
        lambda cart: cart.apply_group_discount(group_name, data.get("percent")),
        "Failed to apply group discount",
    )


@carts_bp.delete("/<user_id>/groups/<path:group_name>/discount")
def remove_group_discount_route(user_id: str, group_name: str):
    return _run(user_id, lambda cart: cart.remove_group_discount(group_name), "Failed to remove group discount")


@carts_bp.put("/<user_id>/items/<item_id>/discount")
def apply_variant_discount_route(user_id: str, item_id: str):
    data = request.get_json(silent=True) or {}
    return _run(
        user_id,
        lambda cart: {"item": cart.apply_variant_discount(item_id, data.get("percent")).to_dict()},
        "Failed to apply variant discount",
    )


@carts_bp.delete("/<user_id>/items/<item_id>/discount")
def remove_variant_discount_route(user_id: str, item_id: str):
    return _run(
        user_id,
        lambda cart: {"item": cart.remove_variant_discount(item_id).to_dict()},
        "Failed to remove variant discount",
    )


@carts_bp.put("/<user_id>/groups/<path:group_name>/wholesale")
def apply_wholesale_route(user_id: str, group_name: str):
    """Body: {"price": p} to force a price, or {} to apply the matching tier."""
    data = request.get_json(silent=True) or {}

    def action(cart):
        if "price" in data:
            cart.apply_wholesale_pricing(group_name, data["price"])
            return None
        return {"tier": cart.refresh_wholesale_pricing(group_name)}

    return _run(user_id, action, "Failed to apply wholesale pricing")


@carts_bp.delete("/<user_id>/groups/<path:group_name>/wholesale")
def remove_wholesale_route(user_id: str, group_name: str):
    return _run(user_id, lambda cart: cart.remove_wholesale_pricing(group_name), "Failed to remove wholesale pricing")


@carts_bp.put("/<user_id>/customer")
def set_customer_route(user_id: str):
    """Body: {"customer_id": id}; the sale made from this cart is linked to it."""
    data = request.get_json(silent=True) or {}

    def action(cart):
        if data.get("customer_id") is None:
            raise ValidationError("customer_id is required")
        customer = customer_service.get_customer(parse_int(data["customer_id"], "customer_id"))
        cart.set_customer(customer.id)
        return {"customer": customer.to_dict()}

    return _run(user_id, action, "Failed to set cart customer")


@carts_bp.delete("/<user_id>/customer")
def clear_customer_route(user_id: str):
    return _run(user_id, lambda cart: cart.set_customer(None), "Failed to clear cart customer")


@carts_bp.post("/<user_id>/checkout")
def checkout_route(user_id: str):
    """
    Body: {"payment_method", "amount_paid"?, "currency"?, "shop_id"?, "branch_name"?,
    "customer_id"?}

    cash needs amount_paid in the selling currency; cod stays pending.
    """
    data = request.get_json(silent=True) or {}
    try:
        settings = settings_service.get_business_settings()
        config = settings_service.PricingConfig.from_settings(settings)
        cart = cart_service.load_cart(user_id, config)
        txn = transaction_service.checkout(
            cart,
            {
                "method": data.get("payment_method"),
                "amount_paid": data.get("amount_paid"),
                "currency": data.get("currency"),
            },
            shop_id=parse_int(data["shop_id"], "shop_id") if data.get("shop_id") is not None else None,
            branch_name=data.get("branch_name") or settings.current_branch,
            created_by=user_id,
            customer_id=data.get("customer_id"),
        )
        cart_service.save_cart(user_id, cart)
        return jsonify({"success": True, "data": txn.to_dict()}), 201
    except TransactionError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to checkout")
        return jsonify({"success": False, "error": "Internal server error"}), 500
