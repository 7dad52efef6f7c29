"""
Cart aggregate.

A Cart owns its lines and cart-wide discount. Stock is reserved as items are
added (reduce callback) and handed back on removal or clear (restore
callback). complete_purchase() empties the cart without handing stock back
because it has been sold.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from ..extensions import db
from ..models import SavedCart
from ..money import ZERO, as_float, as_rate, to_decimal
from ..validation import ValidationError, parse_decimal, parse_int
from . import discount_service
from .discount_service import CartTotals
from .inventory_service import InventoryStore, StockAdjustment
from .settings_service import PricingConfig


class CartError(ValidationError):
    """Raised for cart operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _optional_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value)


@dataclass
class CartItem:
    id: str
    stock_id: int
    group_name: str
    unit_price: Decimal
    original_price: Decimal
    quantity: int
    selected_color: str
    selected_size: str
    color_code: str | None = None
    shop: str | None = None
    discounted_price: Decimal | None = None
    group_discount: Decimal | None = None
    variant_discount: Decimal | None = None
    is_wholesale_pricing: bool = False
    wholesale_tiers: list[dict] = field(default_factory=list)

    def matches(self, stock_id, color: str, size: str) -> bool:
        return (
            self.stock_id == stock_id
            and self.selected_color.casefold() == color.casefold()
            and self.selected_size == size
        )

    def reprice(self) -> None:
        """Recompute discounted_price from whichever percentages remain."""
        self.discounted_price = discount_service.calculate_discounted_price(
            self.unit_price, self.group_discount, self.variant_discount
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stock_id": self.stock_id,
            "group_name": self.group_name,
            "unit_price": as_float(self.unit_price),
            "original_price": as_float(self.original_price),
            "quantity": self.quantity,
            "selected_color": self.selected_color,
            "selected_size": self.selected_size,
            "color_code": self.color_code,
            "shop": self.shop,
            "discounted_price": as_float(self.discounted_price),
            "group_discount": as_rate(self.group_discount),
            "variant_discount": as_rate(self.variant_discount),
            "is_wholesale_pricing": self.is_wholesale_pricing,
            "wholesale_tiers": list(self.wholesale_tiers),
            "effective_price": as_float(discount_service.effective_price(self)),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            id=data["id"],
            stock_id=data["stock_id"],
            group_name=data["group_name"],
            unit_price=to_decimal(data["unit_price"]),
            original_price=to_decimal(data.get("original_price")),
            quantity=int(data["quantity"]),
            selected_color=data["selected_color"],
            selected_size=data["selected_size"],
            color_code=data.get("color_code"),
            shop=data.get("shop"),
            discounted_price=_optional_decimal(data.get("discounted_price")),
            group_discount=_optional_decimal(data.get("group_discount")),
            variant_discount=_optional_decimal(data.get("variant_discount")),
            is_wholesale_pricing=bool(data.get("is_wholesale_pricing", False)),
            wholesale_tiers=list(data.get("wholesale_tiers") or []),
        )


class Cart:
    def __init__(
        self,
        config: PricingConfig,
        inventory: InventoryStore | None = None,
        currency: str | None = None,
    ):
        self.config = config
        self.inventory = inventory
        self.currency = currency or config.default_currency
        self.items: list[CartItem] = []
        self.cart_discount_percent: Decimal = ZERO
        self.customer_id: int | None = None
        self.adjustments: list[StockAdjustment] = []

    # -- inventory callbacks -------------------------------------------------

    def _reduce(self, item: CartItem, quantity: int) -> None:
        if self.inventory is None or quantity <= 0:
            return
        self.adjustments.append(
            self.inventory.reduce_stock(item.stock_id, item.selected_color, item.selected_size, quantity)
        )

    def _restore(self, item: CartItem, quantity: int) -> None:
        if self.inventory is None or quantity <= 0:
            return
        self.adjustments.append(
            self.inventory.restore_stock(item.stock_id, item.selected_color, item.selected_size, quantity)
        )

    # -- lines ---------------------------------------------------------------

    def get_item(self, item_id: str) -> CartItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise CartError("Cart item not found", details={"item_id": item_id})

    def items_in_group(self, group_name: str) -> list[CartItem]:
        return [item for item in self.items if item.group_name == group_name]

    def add_item(self, stock_id, color: str | None, size: str | None, quantity=1) -> CartItem:
        """
        Add quantity of (stock, color, size), merging into an existing line.

        Rejected when color or size is missing or when quantity exceeds the
        stock still available for that variant and size.
        """
        color = (color or "").strip()
        size = (size or "").strip()
        if not color:
            raise CartError("Please select a color")
        if not size:
            raise CartError("Please select a size")
        stock_id = parse_int(stock_id, "stock_id")
        quantity = parse_int(quantity, "quantity")
        if quantity < 1:
            raise CartError("quantity must be >= 1")
        if self.inventory is None:
            raise CartError("Inventory is not available")

        stock = self.inventory.get(stock_id)
        if stock is None:
            raise CartError("Stock item not found", details={"stock_id": stock_id})
        variant = self.inventory.find_variant(stock, color)
        if variant is None:
            raise CartError(f"Color {color} not found", details={"stock_id": stock_id, "color": color})

        available = self.inventory.check_stock(stock_id, color, size)
        if quantity > available:
            raise CartError(
                "Insufficient stock",
                details={
                    "stock_id": stock_id,
                    "color": color,
                    "size": size,
                    "requested": quantity,
                    "available": available,
                },
            )

        existing = next((item for item in self.items if item.matches(stock_id, color, size)), None)
        if existing is not None:
            existing.quantity += quantity
            self._reduce(existing, quantity)
            self._sync_wholesale(existing.group_name)
            return existing

        item = CartItem(
            id=f"{stock_id}-{variant['color']}-{size}-{uuid.uuid4().hex[:8]}",
            stock_id=stock_id,
            group_name=stock["group_name"],
            unit_price=to_decimal(stock["unit_price"]),
            original_price=to_decimal(stock.get("original_price")),
            quantity=quantity,
            selected_color=variant["color"],
            selected_size=size,
            color_code=variant.get("color_code"),
            shop=stock.get("shop"),
            wholesale_tiers=list(stock.get("wholesale_tiers") or []),
        )
        self.items.append(item)
        self._reduce(item, quantity)
        self._sync_wholesale(item.group_name)
        return item

    def update_quantity(self, item_id: str, quantity) -> CartItem:
        """Set a line's quantity (clamped to >= 1); stock is not re-checked."""
        item = self.get_item(item_id)
        quantity = max(1, parse_int(quantity, "quantity"))
        delta = quantity - item.quantity
        item.quantity = quantity
        if delta > 0:
            self._reduce(item, delta)
        elif delta < 0:
            self._restore(item, -delta)
        self._sync_wholesale(item.group_name)
        return item

    def remove_item(self, item_id: str) -> CartItem:
        item = self.get_item(item_id)
        self.items.remove(item)
        self._restore(item, item.quantity)
        self._sync_wholesale(item.group_name)
        return item

    def clear(self) -> None:
        """Empty the cart and hand every line's stock back."""
        for item in list(self.items):
            self._restore(item, item.quantity)
        self.items = []
        self.cart_discount_percent = ZERO
        self.customer_id = None

    def complete_purchase(self) -> None:
        """Empty the cart after checkout; stock stays sold."""
        self.items = []
        self.cart_discount_percent = ZERO
        self.customer_id = None

    def set_customer(self, customer_id) -> None:
        self.customer_id = None if customer_id is None else parse_int(customer_id, "customer_id")

    # -- discounts -----------------------------------------------------------

    def apply_group_discount(self, group_name: str, percent) -> list[CartItem]:
        percent = discount_service.validate_percent(percent)
        items = self.items_in_group(group_name)
        if not items:
            raise CartError("No cart items in group", details={"group_name": group_name})
        for item in items:
            item.group_discount = percent
            item.is_wholesale_pricing = False
            item.reprice()
        return items

    def remove_group_discount(self, group_name: str) -> list[CartItem]:
        items = self.items_in_group(group_name)
        for item in items:
            item.group_discount = None
            if not item.is_wholesale_pricing:
                item.reprice()
        return items

    def apply_variant_discount(self, item_id: str, percent) -> CartItem:
        percent = discount_service.validate_percent(percent)
        item = self.get_item(item_id)
        item.variant_discount = percent
        item.is_wholesale_pricing = False
        item.reprice()
        return item

    def remove_variant_discount(self, item_id: str) -> CartItem:
        item = self.get_item(item_id)
        item.variant_discount = None
        if not item.is_wholesale_pricing:
            item.reprice()
        return item

    def apply_wholesale_pricing(self, group_name: str, per_item_price) -> list[CartItem]:
        """Override every line of the group with per_item_price; clears percentage discounts."""
        price = parse_decimal(per_item_price, "price")
        if price < ZERO:
            raise CartError("price must be >= 0")
        items = self.items_in_group(group_name)
        for item in items:
            item.discounted_price = price
            item.group_discount = None
            item.variant_discount = None
            item.is_wholesale_pricing = True
        return items

    def remove_wholesale_pricing(self, group_name: str) -> list[CartItem]:
        items = self.items_in_group(group_name)
        for item in items:
            if item.is_wholesale_pricing:
                item.is_wholesale_pricing = False
                item.discounted_price = None
        return items

    def refresh_wholesale_pricing(self, group_name: str, tiers: list[dict] | None = None) -> dict | None:
        """
        Apply the tier whose min_quantity equals the group's cart quantity,
        or drop wholesale pricing when none matches. Returns the matched tier.
        """
        items = self.items_in_group(group_name)
        if not items:
            return None
        if tiers is None:
            tiers = items[0].wholesale_tiers
        tier = discount_service.find_matching_tier(tiers, discount_service.group_quantity(items, group_name))
        if tier is None:
            self.remove_wholesale_pricing(group_name)
            return None
        self.apply_wholesale_pricing(group_name, tier["price"])
        return tier

    def _sync_wholesale(self, group_name: str) -> None:
        """
        Keep tier pricing in step with the group's quantity. Only groups that
        are wholesale priced and carry tiers are touched.
        """
        items = self.items_in_group(group_name)
        if not items or not items[0].wholesale_tiers:
            return
        if any(item.is_wholesale_pricing for item in items):
            self.refresh_wholesale_pricing(group_name)

    def apply_cart_discount_percent(self, percent) -> Decimal:
        self.cart_discount_percent = discount_service.validate_percent(percent)
        return self.cart_discount_percent

    def apply_cart_discount_amount(self, amount) -> Decimal:
        """Stored as a percentage of the subtotal at the time of applying."""
        subtotal = self.compute_totals().subtotal
        self.cart_discount_percent = discount_service.amount_to_percent(amount, subtotal)
        return self.cart_discount_percent

    def remove_cart_discount(self) -> None:
        self.cart_discount_percent = ZERO

    # -- totals & persistence ------------------------------------------------

    def compute_totals(self) -> CartTotals:
        return discount_service.compute_totals(self.items, self.cart_discount_percent, self.config)

    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "cart_discount_percent": as_rate(self.cart_discount_percent),
            "currency": self.currency,
            "customer_id": self.customer_id,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict | None,
        config: PricingConfig,
        inventory: InventoryStore | None = None,
    ) -> "Cart":
        data = data or {}
        cart = cls(config, inventory=inventory, currency=data.get("currency"))
        cart.items = [CartItem.from_dict(raw) for raw in data.get("items", [])]
        cart.cart_discount_percent = to_decimal(data.get("cart_discount_percent") or 0)
        cart.customer_id = data.get("customer_id")
        return cart


def load_cart(user_id: str, config: PricingConfig, inventory: InventoryStore | None = None) -> Cart:
    saved = db.session.query(SavedCart).filter_by(user_id=user_id).first()
    return Cart.from_dict(saved.payload if saved else None, config, inventory=inventory)


def save_cart(user_id: str, cart: Cart) -> SavedCart:
    saved = db.session.query(SavedCart).filter_by(user_id=user_id).first()
    if saved is None:
        saved = SavedCart(user_id=user_id)
        db.session.add(saved)
    saved.payload = cart.to_dict()
    db.session.commit()
    return saved


def delete_saved_cart(user_id: str) -> bool:
    saved = db.session.query(SavedCart).filter_by(user_id=user_id).first()
    if saved is None:
        return False
    db.session.delete(saved)
    db.session.commit()
    return True
