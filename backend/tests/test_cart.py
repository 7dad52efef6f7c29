# Overview: Pytest coverage for the cart aggregate and its inventory callbacks.

from decimal import Decimal

import pytest

from boutique.services.cart_service import Cart, CartError
from boutique.validation import ValidationError


@pytest.fixture
def cart(pricing_config, inventory):
    return Cart(pricing_config, inventory=inventory)


class TestAddItem:
    def test_requires_color_and_size(self, cart):
        with pytest.raises(CartError, match="color"):
            cart.add_item(1, "", "M", 1)
        with pytest.raises(CartError, match="size"):
            cart.add_item(1, "Red", None, 1)
        assert cart.is_empty()

    def test_cart_errors_are_validation_errors(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item(1, "Red", "M", 0)

    def test_rejects_quantity_above_stock(self, cart, inventory):
        with pytest.raises(CartError) as exc:
            cart.add_item(1, "Red", "M", 6)
        assert exc.value.details["available"] == 5
        assert inventory.check_stock(1, "Red", "M") == 5
        assert cart.is_empty()

    def test_unknown_stock(self, cart):
        with pytest.raises(CartError, match="not found"):
            cart.add_item(99, "Red", "M", 1)

    def test_add_reduces_and_remove_restores(self, cart, inventory):
        """Red/M holds 5: add 2 -> 3 left, remove -> 5 again."""
        item = cart.add_item(1, "Red", "M", 2)
        assert inventory.check_stock(1, "Red", "M") == 3

        cart.remove_item(item.id)
        assert inventory.check_stock(1, "Red", "M") == 5
        assert cart.is_empty()

    def test_same_variant_merges_into_one_line(self, cart, inventory):
        first = cart.add_item(1, "Red", "M", 1)
        second = cart.add_item(1, "red", "M", 2)

        assert first is second
        assert len(cart.items) == 1
        assert first.quantity == 3
        assert inventory.check_stock(1, "Red", "M") == 2

    def test_line_snapshots_stock_details(self, cart):
        item = cart.add_item(1, "blue", "M", 1)
        assert item.selected_color == "Blue"
        assert item.color_code == "#0000FF"
        assert item.unit_price == Decimal("100")
        assert item.original_price == Decimal("60")
        assert item.wholesale_tiers == [{"min_quantity": 3, "price": 80.0}]

    def test_adjustments_are_recorded(self, cart):
        cart.add_item(1, "Red", "M", 2)
        assert len(cart.adjustments) == 1
        adjustment = cart.adjustments[0]
        assert adjustment.applied is True
        assert adjustment.persisted is False
        assert adjustment.new_quantity == 3


class TestUpdateQuantity:
    def test_clamps_to_one(self, cart, inventory):
        item = cart.add_item(1, "Red", "M", 2)
        cart.update_quantity(item.id, 0)
        assert item.quantity == 1
        assert inventory.check_stock(1, "Red", "M") == 4

    def test_increase_reduces_stock_without_recheck(self, cart, inventory):
        item = cart.add_item(1, "Blue", "M", 1)
        cart.update_quantity(item.id, 4)
        assert item.quantity == 4
        # Only 2 existed; the decrement clamps at 0
        assert inventory.check_stock(1, "Blue", "M") == 0

    def test_unknown_item(self, cart):
        with pytest.raises(CartError):
            cart.update_quantity("missing", 2)


class TestDiscounts:
    def test_group_discount_applies_to_every_line_in_group(self, cart):
        red = cart.add_item(1, "Red", "M", 1)
        blue = cart.add_item(1, "Blue", "M", 1)
        skirt = cart.add_item(2, "Black", "S", 1)

        cart.apply_group_discount("Linen Shirt", 10)

        assert red.discounted_price == Decimal("90")
        assert blue.discounted_price == Decimal("90")
        assert skirt.discounted_price is None

    def test_variant_stacks_with_group(self, cart):
        red = cart.add_item(1, "Red", "M", 1)
        cart.apply_group_discount("Linen Shirt", 10)
        cart.apply_variant_discount(red.id, 5)
        assert red.discounted_price == Decimal("85")

        cart.remove_group_discount("Linen Shirt")
        assert red.discounted_price == Decimal("95")

        cart.remove_variant_discount(red.id)
        assert red.discounted_price is None

    def test_invalid_percent_leaves_cart_unchanged(self, cart):
        red = cart.add_item(1, "Red", "M", 1)
        with pytest.raises(ValidationError):
            cart.apply_variant_discount(red.id, 120)
        assert red.variant_discount is None
        assert red.discounted_price is None

    def test_group_discount_on_missing_group(self, cart):
        with pytest.raises(CartError):
            cart.apply_group_discount("Nope", 10)

    def test_wholesale_clears_percentage_discounts(self, cart):
        red = cart.add_item(1, "Red", "M", 1)
        cart.apply_group_discount("Linen Shirt", 10)
        cart.apply_variant_discount(red.id, 5)

        cart.apply_wholesale_pricing("Linen Shirt", "80")

        assert red.discounted_price == Decimal("80")
        assert red.group_discount is None
        assert red.variant_discount is None
        assert red.is_wholesale_pricing is True

        cart.remove_wholesale_pricing("Linen Shirt")
        assert red.discounted_price is None
        assert red.is_wholesale_pricing is False

    def test_refresh_wholesale_uses_exact_tier(self, cart):
        red = cart.add_item(1, "Red", "M", 2)
        assert cart.refresh_wholesale_pricing("Linen Shirt") is None
        assert red.discounted_price is None

        cart.update_quantity(red.id, 3)
        tier = cart.refresh_wholesale_pricing("Linen Shirt")
        assert tier["min_quantity"] == 3
        assert red.discounted_price == Decimal("80")

        cart.update_quantity(red.id, 4)
        assert cart.refresh_wholesale_pricing("Linen Shirt") is None
        assert red.is_wholesale_pricing is False

    def test_quantity_change_drops_stale_tier_price(self, cart):
        red = cart.add_item(1, "Red", "M", 3)
        cart.refresh_wholesale_pricing("Linen Shirt")
        assert red.discounted_price == Decimal("80")

        cart.update_quantity(red.id, 4)

        assert red.is_wholesale_pricing is False
        assert red.discounted_price is None

    def test_new_colour_reprices_wholesale_group(self, cart):
        """Red 2 + Blue 1 hit the 3-unit tier; a fourth shirt leaves it."""
        cart.add_item(1, "Red", "M", 2)
        cart.add_item(1, "Blue", "M", 1)
        cart.refresh_wholesale_pricing("Linen Shirt")
        assert [i.discounted_price for i in cart.items] == [Decimal("80"), Decimal("80")]

        cart.add_item(1, "Red", "L", 1)

        assert [(i.discounted_price, i.is_wholesale_pricing) for i in cart.items] == [(None, False)] * 3
        assert cart.compute_totals().subtotal == Decimal("400")

    def test_forced_price_without_tiers_survives_quantity_change(self, cart):
        skirt = cart.add_item(2, "Black", "S", 2)
        cart.apply_wholesale_pricing("Denim Skirt", "200")

        cart.update_quantity(skirt.id, 3)

        assert skirt.is_wholesale_pricing is True
        assert skirt.discounted_price == Decimal("200")

    def test_cart_discount_amount_stored_as_percent(self, cart):
        cart.add_item(1, "Red", "M", 2)
        percent = cart.apply_cart_discount_amount(20)
        assert percent == Decimal("10")
        assert cart.compute_totals().discount == Decimal("20")

        # Percentage is kept, so the amount follows the subtotal
        cart.add_item(1, "Red", "M", 2)
        assert cart.compute_totals().discount == Decimal("40")


class TestClearAndComplete:
    def test_clear_restores_everything(self, cart, inventory):
        cart.add_item(1, "Red", "M", 2)
        cart.add_item(2, "Black", "S", 4)
        cart.apply_cart_discount_percent(5)
        cart.set_customer(7)

        cart.clear()

        assert cart.is_empty()
        assert cart.cart_discount_percent == 0
        assert cart.customer_id is None
        assert inventory.check_stock(1, "Red", "M") == 5
        assert inventory.check_stock(2, "Black", "S") == 4

    def test_complete_purchase_keeps_stock_sold(self, cart, inventory):
        cart.add_item(1, "Red", "M", 2)
        cart.complete_purchase()
        assert cart.is_empty()
        assert inventory.check_stock(1, "Red", "M") == 3


class TestSerialization:
    def test_snapshot_restores_pricing_state(self, cart, pricing_config):
        red = cart.add_item(1, "Red", "M", 3)
        cart.apply_group_discount("Linen Shirt", 10)
        cart.apply_cart_discount_percent(10)
        cart.set_customer("7")
        before = cart.compute_totals()

        restored = Cart.from_dict(cart.to_dict(), pricing_config)

        assert [i.id for i in restored.items] == [red.id]
        assert restored.items[0].group_discount == Decimal("10")
        assert restored.customer_id == 7
        after = restored.compute_totals()
        assert after.grand_total == before.grand_total == Decimal("260.01")
        assert restored.to_dict()["items"][0]["effective_price"] == 90.0
