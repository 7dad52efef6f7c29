# Overview: HTTP-level tests through the Flask test client.


class TestSystemApi:
    def test_health(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["data"]["database"]["status"] == "healthy"


class TestStocksApi:
    def test_crud(self, client, shop):
        response = client.post("/api/stocks", json={
            "group_name": "Denim Skirt",
            "unit_price": 250,
            "original_price": 300,
            "shop": shop.name,
            "color_variants": [{"color": "Black", "size_quantities": [{"size": "S", "quantity": 4}]}],
        })
        assert response.status_code == 201
        stock_id = response.get_json()["data"]["id"]

        response = client.put(f"/api/stocks/{stock_id}", json={"category": "Bottoms"})
        assert response.get_json()["data"]["category"] == "Bottoms"

        listing = client.get("/api/stocks?category=Bottoms").get_json()["data"]
        assert [s["group_name"] for s in listing] == ["Denim Skirt"]

        assert client.delete(f"/api/stocks/{stock_id}").status_code == 200
        assert client.get(f"/api/stocks/{stock_id}").status_code == 404

    def test_validation_error(self, client, db_session):
        response = client.post("/api/stocks", json={"group_name": "No Price"})
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_low_stock_uses_configured_threshold(self, client, stock_group):
        body = client.get("/api/stocks/low").get_json()
        assert body["threshold"] == 2
        assert [(r["color"], r["size"]) for r in body["data"]] == [("Blue", "M")]


class TestShopsApi:
    def test_duplicate_name_conflicts(self, client, shop):
        response = client.post("/api/shops", json={"name": "Main Shop"})
        assert response.status_code == 409

    def test_update_unknown_shop(self, client, db_session):
        assert client.put("/api/shops/999", json={"status": "inactive"}).status_code == 404


class TestSettingsApi:
    def test_round_trip(self, client, settings):
        response = client.put("/api/settings", json={"tax_rate": 10, "business_name": "Mya Boutique"})
        assert response.status_code == 200

        data = client.get("/api/settings").get_json()["data"]
        assert data["tax_rate"] == 10.0
        assert data["business_name"] == "Mya Boutique"
        assert [c["code"] for c in data["currencies"]] == ["THB", "MMK"]

    def test_invalid_tax_rate(self, client, settings):
        assert client.put("/api/settings", json={"tax_rate": 150}).status_code == 400


class TestExpensesApi:
    def test_lookups_and_expenses(self, client, db_session):
        response = client.post("/api/expenses", json={"type": "category", "name": "Rent"})
        assert response.status_code == 201
        category_id = response.get_json()["data"]["id"]

        assert client.post("/api/expenses", json={"type": "category", "name": "Rent"}).status_code == 409

        categories = client.get("/api/expenses?type=categories").get_json()["data"]
        assert [c["name"] for c in categories] == ["Rent"]

        response = client.post("/api/expenses", json={
            "date": "2026-10-01", "currency": "THB", "amount": 1500, "category_id": category_id,
        })
        assert response.status_code == 201
        expense_id = response.get_json()["data"]["id"]

        response = client.put(f"/api/expenses?id={expense_id}", json={"note": "October"})
        assert response.get_json()["data"]["note"] == "October"

        body = client.get("/api/expenses?start=2026-10-01&end=2026-10-31").get_json()
        assert body["totals"]["THB"] == 1500.0
        assert len(body["data"]) == 1

        assert client.delete(f"/api/expenses?id={expense_id}").status_code == 200
        assert client.get(f"/api/expenses?id={expense_id}").status_code == 404

    def test_invalid_lookup_type(self, client, db_session):
        assert client.get("/api/expenses?type=vendors").status_code == 400


class TestCartAndCheckoutApi:
    def _add(self, client, stock_id, color="Red", size="M", quantity=1):
        return client.post("/api/carts/cashier/items", json={
            "stock_id": stock_id, "color": color, "size": size, "quantity": quantity,
        })

    def test_sale_refund_and_cancel(self, client, settings, stock_group, read_quantity):
        response = self._add(client, stock_group.id, quantity=2)
        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["totals"]["subtotal"] == 200.0
        assert data["adjustments"][0]["persisted"] is True
        assert read_quantity(stock_group.id, "Red", "M") == 3

        self._add(client, stock_group.id, color="Blue")
        totals = client.get("/api/carts/cashier").get_json()["data"]["totals"]
        assert totals["grand_total"] == 321.0

        response = client.post("/api/carts/cashier/checkout", json={"payment_method": "cash", "amount_paid": 500})
        assert response.status_code == 201
        txn = response.get_json()["data"]
        assert txn["transaction_id"] == "TXN-0000000000001"
        assert txn["change"] == 179.0
        assert txn["branch_name"] == "Main Shop"
        assert client.get("/api/carts/cashier").get_json()["data"]["cart"]["items"] == []

        response = client.post(
            f"/api/transactions/{txn['transaction_id']}/refund",
            json={"items": [{"item_index": 0, "quantity": 1}], "reason": "Defect"},
        )
        assert response.status_code == 201
        body = response.get_json()["data"]
        assert body["refund"]["total_amount"] == 100.0
        assert body["transaction"]["status"] == "partially_refunded"
        assert read_quantity(stock_group.id, "Red", "M") == 4

        response = client.post(f"/api/transactions/{txn['id']}/cancel", json={})
        assert response.status_code == 400

        response = client.post(f"/api/transactions/{txn['id']}/cancel", json={"reason": "Customer left"})
        assert response.get_json()["data"]["status"] == "cancelled"
        assert read_quantity(stock_group.id, "Red", "M") == 5
        assert read_quantity(stock_group.id, "Blue", "M") == 2

    def test_add_more_than_available(self, client, settings, stock_group):
        response = self._add(client, stock_group.id, color="Blue", quantity=3)
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_clear_returns_stock(self, client, settings, stock_group, read_quantity):
        self._add(client, stock_group.id, size="L", quantity=3)
        assert read_quantity(stock_group.id, "Red", "L") == 0

        response = client.delete("/api/carts/cashier")
        assert response.status_code == 200
        assert read_quantity(stock_group.id, "Red", "L") == 3

    def test_discounts_and_wholesale(self, client, settings, stock_group):
        item = self._add(client, stock_group.id, quantity=3).get_json()["data"]["item"]

        response = client.put("/api/carts/cashier/groups/Linen%20Shirt/wholesale", json={})
        assert response.get_json()["data"]["tier"]["min_quantity"] == 3
        assert response.get_json()["data"]["totals"]["subtotal"] == 240.0

        client.delete("/api/carts/cashier/groups/Linen%20Shirt/wholesale")
        response = client.put(f"/api/carts/cashier/items/{item['id']}/discount", json={"percent": 10})
        assert response.get_json()["data"]["totals"]["subtotal"] == 270.0

        response = client.put("/api/carts/cashier/discount", json={"amount": 27})
        assert response.get_json()["data"]["totals"]["cart_discount_percent"] == 10.0

        assert client.put("/api/carts/cashier/discount", json={}).status_code == 400

    def test_checkout_empty_cart(self, client, settings):
        response = client.post("/api/carts/nobody/checkout", json={"payment_method": "scan"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Cart is empty"

    def test_insufficient_payment_details(self, client, settings, stock_group):
        self._add(client, stock_group.id)
        response = client.post("/api/carts/cashier/checkout", json={"payment_method": "cash", "amount_paid": 50})
        assert response.status_code == 400
        assert response.get_json()["details"]["required"] == 107.0


class TestTransactionsApi:
    def test_unknown_transaction(self, client, db_session):
        assert client.get("/api/transactions/TXN-0000000000404").status_code == 404

    def test_invalid_dates(self, client, db_session):
        assert client.get("/api/transactions?start=yesterday").status_code == 400


class TestReportsAndExportsApi:
    def test_report_summary(self, client, settings, stock_group):
        body = client.get("/api/reports/summary?range=7d").get_json()
        assert body["success"] is True
        assert len(body["data"]["daily"]) == 7
        assert body["data"]["stock"]["total_units"] == 10

    def test_bad_range(self, client, settings):
        assert client.get("/api/reports/summary?range=custom").status_code == 400

    def test_inventory_csv(self, client, settings, stock_group):
        response = client.get("/api/exports/inventory")
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        text = response.get_data(as_text=True)
        assert text.startswith("\ufeff")
        assert '"Linen Shirt","Main Shop","Red"' in text

    def test_bom_can_be_disabled(self, client, settings):
        text = client.get("/api/exports/expenses?bom=false").get_data(as_text=True)
        assert text.startswith('"Date"')


class TestLabelsApi:
    def test_print(self, client, settings, stock_group):
        response = client.post("/api/labels/print", json={
            "selections": [{"stock_id": stock_group.id, "color": "Blue", "size": "M", "copies": 2}],
            "auto_sequence": 1,
        })
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert html.count('class="label"') == 2
        assert "890123400001" in html

    def test_empty_selection(self, client, settings):
        assert client.post("/api/labels/print", json={"selections": []}).status_code == 400
