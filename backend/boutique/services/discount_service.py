"""
Pure pricing rules for cart lines.

Group and variant percentages stack additively and are applied once to the
unit price. Wholesale pricing replaces both. The cart-wide discount is always
held as a percentage of the subtotal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from ..money import HUNDRED, ZERO, as_float, as_rate, to_decimal
from ..validation import ValidationError, parse_decimal
from .settings_service import PricingConfig, percent_of


def validate_percent(value, field_name: str = "percent") -> Decimal:
    percent = parse_decimal(value, field_name)
    if percent < ZERO or percent > HUNDRED:
        raise ValidationError(f"{field_name} must be between 0 and 100")
    return percent


def calculate_discounted_price(unit_price, group_discount=None, variant_discount=None) -> Decimal | None:
    """
    unit_price * (1 - (group + variant) / 100), or None when neither discount
    is set. The combined percentage is capped at 100 so a price never goes
    negative.
    """
    if group_discount is None and variant_discount is None:
        return None
    total = to_decimal(group_discount) + to_decimal(variant_discount)
    total = min(total, HUNDRED)
    return to_decimal(unit_price) * (1 - total / HUNDRED)


def effective_price(item) -> Decimal:
    if item.discounted_price is not None:
        return to_decimal(item.discounted_price)
    return to_decimal(item.unit_price)


def find_matching_tier(tiers: Iterable[dict], quantity: int) -> dict | None:
    """Exact match only: a tier applies when quantity == min_quantity."""
    for tier in tiers or ():
        if int(tier["min_quantity"]) == int(quantity):
            return tier
    return None


def group_quantity(items: Iterable, group_name: str) -> int:
    return sum(item.quantity for item in items if item.group_name == group_name)


def amount_to_percent(amount, subtotal) -> Decimal:
    """Express a fixed cart discount as a percentage of the current subtotal."""
    amount = parse_decimal(amount, "amount")
    subtotal = to_decimal(subtotal)
    if subtotal <= ZERO:
        raise ValidationError("Cannot apply a discount amount to an empty cart")
    if amount < ZERO or amount > subtotal:
        raise ValidationError("amount must be between 0 and the cart subtotal")
    return amount / subtotal * HUNDRED


def _has_percent_discount(item) -> bool:
    return bool(item.group_discount) or bool(item.variant_discount)


@dataclass
class Savings:
    group: Decimal = ZERO
    variant: Decimal = ZERO
    wholesale: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.group + self.variant + self.wholesale


def savings_breakdown(items: Iterable) -> Savings:
    """
    Display-only savings per discount kind, measured against unit_price.

    Wholesale savings only count for lines without a group/variant discount.
    The group and variant shares stop at 100% of the line, group first, the
    same cap calculate_discounted_price applies.
    """
    savings = Savings()
    for item in items:
        line_base = to_decimal(item.unit_price) * item.quantity
        group_percent = min(to_decimal(item.group_discount), HUNDRED)
        variant_percent = min(to_decimal(item.variant_discount), HUNDRED - group_percent)
        if group_percent:
            savings.group += percent_of(line_base, group_percent)
        if variant_percent:
            savings.variant += percent_of(line_base, variant_percent)
        if item.is_wholesale_pricing and not _has_percent_discount(item) and item.discounted_price is not None:
            diff = to_decimal(item.unit_price) - to_decimal(item.discounted_price)
            savings.wholesale += diff * item.quantity
    return savings


@dataclass
class CartTotals:
    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    after_discount: Decimal = ZERO
    tax: Decimal = ZERO
    grand_total: Decimal = ZERO
    cart_discount_percent: Decimal = ZERO
    tax_rate: Decimal = ZERO
    total_items: int = 0
    original_subtotal: Decimal = ZERO
    savings: Savings = field(default_factory=Savings)

    def to_dict(self) -> dict:
        return {
            "subtotal": as_float(self.subtotal),
            "discount": as_float(self.discount),
            "after_discount": as_float(self.after_discount),
            "tax": as_float(self.tax),
            "grand_total": as_float(self.grand_total),
            "cart_discount_percent": as_rate(self.cart_discount_percent),
            "tax_rate": as_rate(self.tax_rate),
            "total_items": self.total_items,
            "original_subtotal": as_float(self.original_subtotal),
            "savings": {
                "group": as_float(self.savings.group),
                "variant": as_float(self.savings.variant),
                "wholesale": as_float(self.savings.wholesale),
                "cart": as_float(self.discount),
                "total": as_float(self.savings.total + self.discount),
            },
        }


def compute_totals(items: Iterable, cart_discount_percent, config: PricingConfig) -> CartTotals:
    items = list(items)
    cart_percent = to_decimal(cart_discount_percent)

    subtotal = sum((effective_price(item) * item.quantity for item in items), ZERO)
    discount = percent_of(subtotal, cart_percent)
    after_discount = subtotal - discount
    tax = percent_of(after_discount, config.tax_rate)

    return CartTotals(
        subtotal=subtotal,
        discount=discount,
        after_discount=after_discount,
        tax=tax,
        grand_total=after_discount + tax,
        cart_discount_percent=cart_percent,
        tax_rate=config.tax_rate,
        total_items=sum(item.quantity for item in items),
        original_subtotal=sum((to_decimal(item.unit_price) * item.quantity for item in items), ZERO),
        savings=savings_breakdown(items),
    )
