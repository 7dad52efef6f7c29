# Overview: Pytest coverage for CSV exports.

import csv
import io

from boutique.services import export_service


def _rows(content):
    return list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))


class TestBuildCsv:
    def test_bom_and_quoting(self):
        content = export_service.build_csv(("Name", "Note"), [("Shirt", 'say "hi"'), ("Skirt", None)])

        assert content.startswith("\ufeff")
        lines = content.lstrip("\ufeff").splitlines()
        assert lines[0] == '"Name","Note"'
        assert lines[1] == '"Shirt","say ""hi"""'
        assert lines[2] == '"Skirt",""'

    def test_without_bom(self):
        content = export_service.build_csv(("A",), [], include_bom=False)
        assert content == '"A"\n'


class TestExports:
    def test_expenses(self):
        content = export_service.expenses_csv([
            {"date": "2026-10-01", "category_name": "Rent", "spending_menu_name": None,
             "note": "October, shop", "amount": 1500.5, "currency": "THB"},
        ])
        rows = _rows(content)
        assert rows[0] == list(export_service.EXPENSE_HEADERS)
        assert rows[1] == ["2026-10-01", "Rent", "", "October, shop", "1500.50", "THB"]

    def test_inventory_has_row_per_size(self, stock_doc):
        rows = _rows(export_service.inventory_csv([stock_doc]))
        assert len(rows) == 4
        assert rows[1] == ["Linen Shirt", "Main Shop", "Red", "#FF0000", "885000000011", "M", "5",
                           "100.00", "60.00"]
        assert rows[3][2:6] == ["Blue", "#0000FF", "", "M"]

    def test_transactions_use_net_figures_in_selling_currency(self):
        txn = {
            "transaction_id": "TXN-0000000000007",
            "timestamp": "2026-10-18T10:00:00Z",
            "status": "partially_refunded",
            "payment_method": "cash",
            "branch_name": "Main Shop",
            "selling_currency": "MMK",
            "exchange_rate": 120.0,
            "total": 214.0,
            "tax": 14.0,
            "items": [
                {"group_name": "Linen Shirt", "selected_color": "Red", "selected_size": "M",
                 "quantity": 2, "unit_price": 100.0, "original_price": 60.0, "discounted_price": None},
            ],
            "refunds": [{"total_amount": 100.0, "items": [{"item_index": 0, "quantity": 1}]}],
        }
        rows = _rows(export_service.transactions_csv([txn]))

        assert rows[0] == list(export_service.TRANSACTION_HEADERS)
        assert rows[1] == [
            "TXN-0000000000007",
            "2026-10-18T10:00:00Z",
            "Linen Shirt (Red/M) x1",
            "13680.00",
            "4800.00",
            "1680.00",
            "Main Shop",
            "MMK",
            "cash",
            "partially_refunded",
        ]
