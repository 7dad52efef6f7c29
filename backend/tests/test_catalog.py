# Overview: Pytest coverage for stock groups, shops and business settings.

from decimal import Decimal

import pytest

from boutique.services import catalog_service, settings_service, shop_service
from boutique.services.settings_service import PricingConfig, convert_price, format_price, normalize_currency
from boutique.validation import ConflictError, NotFoundError, ValidationError


class TestStockGroups:
    def test_create_nests_variants_and_tiers(self, stock_group):
        data = stock_group.to_dict()
        assert data["group_name"] == "Linen Shirt"
        assert data["unit_price"] == 100.0
        assert [v["color"] for v in data["color_variants"]] == ["Red", "Blue"]
        assert data["wholesale_tiers"] == [{"min_quantity": 3, "price": 80.0}]
        assert data["total_quantity"] == 10

    def test_update_replaces_variants(self, stock_group):
        catalog_service.update_stock(stock_group.id, {
            "unit_price": "120",
            "color_variants": [{"color": "Green", "size_quantities": [{"size": "S", "quantity": 1}]}],
        })
        stock = catalog_service.get_stock(stock_group.id)
        assert stock.unit_price == Decimal("120")
        assert [v.color for v in stock.color_variants] == ["Green"]
        assert len(stock.wholesale_tiers) == 1

    def test_colorless_group_gets_label(self, shop):
        stock = catalog_service.create_stock({
            "group_name": "Tote Bag",
            "unit_price": "50",
            "is_colorless": True,
            "color_variants": [{"size_quantities": [{"size": "One Size", "quantity": 4}]}],
        })
        assert stock.color_variants[0].color == catalog_service.COLORLESS_LABEL

    @pytest.mark.parametrize("payload,message", [
        ({"unit_price": "10"}, "Missing required fields"),
        ({"group_name": "X", "unit_price": "-1"}, "unit_price must be >= 0"),
        ({"group_name": "X", "unit_price": "10", "sku": "A1"}, "Field not allowed"),
        ({"group_name": "X", "unit_price": "10", "color_variants": [{"size_quantities": []}]}, "color is required"),
        ({"group_name": "X", "unit_price": "10", "color_variants": [{"color": "Red"}, {"color": "red"}]},
         "Duplicate color variant"),
        ({"group_name": "X", "unit_price": "10",
          "color_variants": [{"color": "Red", "size_quantities": [{"size": "M", "quantity": -1}]}]},
         "quantity must be >= 0"),
        ({"group_name": "X", "unit_price": "10", "wholesale_tiers": [{"min_quantity": 0, "price": 5}]},
         "min_quantity must be >= 1"),
    ])
    def test_invalid_payloads(self, db_session, payload, message):
        with pytest.raises(ValidationError, match=message):
            catalog_service.create_stock(payload)

    def test_list_filters(self, stock_group):
        catalog_service.create_stock({"group_name": "Denim Skirt", "unit_price": "250", "category": "Bottoms"})

        assert [s.group_name for s in catalog_service.list_stocks()] == ["Denim Skirt", "Linen Shirt"]
        assert [s.group_name for s in catalog_service.list_stocks(category="Tops")] == ["Linen Shirt"]
        assert [s.group_name for s in catalog_service.list_stocks(search="denim")] == ["Denim Skirt"]
        assert [s.id for s in catalog_service.list_stocks(barcode="885000000011")] == [stock_group.id]

    def test_delete(self, stock_group):
        catalog_service.delete_stock(stock_group.id)
        with pytest.raises(NotFoundError):
            catalog_service.get_stock(stock_group.id)

    def test_low_stock(self, stock_group):
        rows = catalog_service.low_stock(2)
        assert [(r["color"], r["size"], r["quantity"]) for r in rows] == [("Blue", "M", 2)]


class TestShops:
    def test_create_and_update(self, db_session):
        shop = shop_service.create_shop({"name": "Riverside", "location": "Bangkok"})
        shop_service.update_shop(shop.id, {"status": "inactive"})

        assert shop_service.list_shops(include_inactive=False) == []
        assert [s.name for s in shop_service.list_shops()] == ["Riverside"]

    def test_duplicate_name(self, shop):
        with pytest.raises(ConflictError):
            shop_service.create_shop({"name": "Main Shop"})

    def test_invalid_status(self, shop):
        with pytest.raises(ValidationError, match="status must be one of"):
            shop_service.update_shop(shop.id, {"status": "closed"})

    def test_delete(self, shop):
        shop_service.delete_shop(shop.id)
        with pytest.raises(NotFoundError):
            shop_service.get_shop(shop.id)


class TestSettings:
    def test_defaults_created_on_first_read(self, db_session):
        settings = settings_service.get_business_settings()
        assert settings.default_currency == "THB"
        assert settings.tax_rate == Decimal("7")

    def test_update(self, settings):
        settings_service.update_business_settings({"tax_rate": "10", "default_currency": "mmk"})
        config = settings_service.get_pricing_config()
        assert config.tax_rate == Decimal("10")
        assert config.default_currency == "MMK"
        assert config.other_currency == "THB"

    @pytest.mark.parametrize("payload", [
        {"tax_rate": "101"},
        {"currency_rate": "-1"},
        {"gs1_company_prefix": "12AB"},
        {"default_currency": "USD"},
    ])
    def test_invalid_updates(self, settings, payload):
        with pytest.raises(ValidationError):
            settings_service.update_business_settings(payload)


class TestCurrency:
    def test_conversion_direction(self, pricing_config):
        assert convert_price(100, "THB", "MMK", pricing_config) == Decimal("12000")
        assert convert_price(12000, "MMK", "THB", pricing_config) == Decimal("100")
        assert convert_price(5, "THB", "THB", pricing_config) == Decimal("5")

    def test_unconfigured_rate(self):
        config = PricingConfig(conversion_rate=Decimal("0"))
        with pytest.raises(ValidationError, match="not configured"):
            convert_price(1, "THB", "MMK", config)

    def test_aliases_and_formatting(self):
        assert normalize_currency(" baht ") == "THB"
        assert format_price(Decimal("1234.5"), "THB") == "฿1,234.50"
        assert format_price(Decimal("12000"), "MMK") == "12,000 Ks"
