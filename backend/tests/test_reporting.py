# Overview: Pytest coverage for report windows and sales aggregation.

from datetime import date, datetime
from decimal import Decimal

import pytest

from boutique.services import expense_service, reporting_service
from boutique.services.reporting_service import ReportError, build_report, resolve_window

NOW = datetime(2026, 10, 19, 12, 0)


def _txn(**overrides):
    txn = {
        "transaction_id": "TXN-0000000000001",
        "status": "completed",
        "payment_method": "cash",
        "subtotal": 200.0,
        "discount": 0.0,
        "tax": 14.0,
        "total": 214.0,
        "selling_currency": "THB",
        "exchange_rate": 1.0,
        "timestamp": "2026-10-18T10:00:00Z",
        "items": [
            {
                "group_name": "Linen Shirt",
                "quantity": 2,
                "unit_price": 100.0,
                "original_price": 60.0,
                "discounted_price": None,
            }
        ],
        "refunds": [],
    }
    txn.update(overrides)
    return txn


@pytest.fixture
def transactions():
    return [
        _txn(),
        _txn(
            transaction_id="TXN-0000000000002",
            payment_method="scan",
            subtotal=100.0,
            tax=7.0,
            total=107.0,
            selling_currency="MMK",
            exchange_rate=120.0,
            timestamp="2026-10-19T09:00:00Z",
            items=[{"group_name": "Linen Shirt", "quantity": 1, "unit_price": 100.0,
                    "original_price": 60.0, "discounted_price": None}],
        ),
        _txn(transaction_id="TXN-0000000000003", status="cancelled", total=500.0,
             timestamp="2026-10-19T11:00:00Z"),
        _txn(transaction_id="TXN-0000000000004", timestamp="2026-09-01T08:00:00Z"),
    ]


@pytest.fixture
def expenses():
    return [
        {"date": "2026-10-19", "currency": "THB", "amount": 50.0},
        {"date": "2026-10-17", "currency": "MMK", "amount": 1000.0},
        {"date": "2026-08-01", "currency": "THB", "amount": 999.0},
    ]


class TestResolveWindow:
    def test_seven_days_includes_today(self):
        window = resolve_window("7d", now=NOW)
        assert window.start == datetime(2026, 10, 13)
        assert window.end.date() == date(2026, 10, 19)

    def test_today(self):
        window = resolve_window("today", now=NOW)
        assert window.start.date() == window.end.date() == date(2026, 10, 19)

    def test_all_is_unbounded(self):
        window = resolve_window("all", now=NOW)
        assert window.bounded is False
        assert window.contains(datetime(2001, 1, 1))

    def test_custom_range(self):
        window = resolve_window("custom", "2026-10-01", "2026-10-05")
        assert window.contains(datetime(2026, 10, 5, 23, 59))
        assert not window.contains(datetime(2026, 10, 6))

    @pytest.mark.parametrize("start,end", [
        (None, "2026-10-05"),
        ("2026-10-05", "2026-10-01"),
        ("not-a-date", "2026-10-01"),
    ])
    def test_invalid_custom_range(self, start, end):
        with pytest.raises(ReportError):
            resolve_window("custom", start, end)

    def test_unknown_range(self):
        with pytest.raises(ReportError, match="range must be one of"):
            resolve_window("2w")


class TestTransactionArithmetic:
    def test_net_revenue_subtracts_refunds(self):
        txn = _txn(refunds=[{"total_amount": 100.0, "items": [{"item_index": 0, "quantity": 1}]}])
        assert reporting_service.net_revenue(txn) == Decimal("114")
        assert reporting_service.net_quantities(txn) == [1]
        assert reporting_service.transaction_profit(txn) == Decimal("40")

    def test_fully_refunded_item_drops_out_of_profit(self):
        """Shirt margin 40 x 2 is refunded in full; only the tee's margin 50 remains."""
        items = [
            {"group_name": "Linen Shirt", "quantity": 2, "unit_price": 100.0,
             "original_price": 60.0, "discounted_price": None},
            {"group_name": "Cotton Tee", "quantity": 1, "unit_price": 150.0,
             "original_price": 100.0, "discounted_price": None},
        ]
        txn = _txn(items=items, refunds=[{"total_amount": 200.0, "items": [{"item_index": 0, "quantity": 2}]}])
        assert reporting_service.net_quantities(txn) == [0, 1]
        assert reporting_service.transaction_profit(txn) == Decimal("50")

        over_recorded = _txn(items=items, refunds=[
            {"total_amount": 200.0, "items": [{"item_index": 0, "quantity": 2}]},
            {"total_amount": 100.0, "items": [{"item_index": 0, "quantity": 1}]},
        ])
        assert reporting_service.net_quantities(over_recorded) == [0, 1]
        assert reporting_service.transaction_profit(over_recorded) == Decimal("50")

    def test_net_revenue_floors_at_zero(self):
        txn = _txn(total=100.0, refunds=[{"total_amount": 150.0, "items": []}])
        assert reporting_service.net_revenue(txn) == Decimal("0")

    def test_negative_margin_floors_profit(self):
        txn = _txn(items=[{"group_name": "Denim Skirt", "quantity": 1, "unit_price": 250.0,
                           "original_price": 300.0, "discounted_price": None}])
        assert reporting_service.transaction_profit(txn) == Decimal("0")

    def test_only_settled_statuses_count(self):
        assert reporting_service.counts_as_revenue(_txn(status="refunded"))
        assert not reporting_service.counts_as_revenue(_txn(status="pending"))
        assert not reporting_service.counts_as_revenue(_txn(status="cancelled"))


class TestBuildReport:
    def test_currency_buckets(self, transactions, expenses, stock_doc):
        report = build_report(
            transactions, expenses, [stock_doc], window=resolve_window("7d", now=NOW)
        )

        thb = report["totals"]["THB"]
        assert thb["revenue"] == 214.0
        assert thb["profit"] == 80.0
        assert thb["expenses"] == 50.0
        assert thb["net_profit"] == 30.0
        assert thb["transactions"] == 1

        mmk = report["totals"]["MMK"]
        assert mmk["revenue"] == 12840.0
        assert mmk["profit"] == 4800.0
        assert mmk["expenses"] == 1000.0

    def test_daily_buckets_cover_window(self, transactions, expenses):
        report = build_report(transactions, expenses, [], window=resolve_window("7d", now=NOW))

        assert [d["date"] for d in report["daily"]][0] == "2026-10-13"
        assert len(report["daily"]) == 7
        today = report["daily"][-1]
        assert today["date"] == "2026-10-19"
        assert today["currencies"]["THB"]["expenses"] == 50.0
        assert today["currencies"]["MMK"]["revenue"] == 12840.0

    def test_summary_and_rankings(self, transactions, expenses):
        report = build_report(transactions, expenses, [], window=resolve_window("7d", now=NOW))

        summary = report["summary"]
        assert summary["total_transactions"] == 3
        assert summary["revenue_transactions"] == 2
        assert summary["status_counts"] == {"completed": 2, "cancelled": 1}
        assert summary["net_revenue"] == 321.0

        assert report["top_selling_items"] == [
            {"group_name": "Linen Shirt", "quantity": 3, "revenue": 300.0}
        ]
        assert [m["method"] for m in report["payment_methods"]] == ["cash", "scan"]

    def test_stock_totals(self, stock_doc):
        totals = reporting_service.stock_totals([stock_doc], low_stock_threshold=2)
        assert totals["total_units"] == 10
        assert totals["retail_value"] == 1000.0
        assert totals["cost_value"] == 600.0
        assert totals["low_stock"] == [
            {"stock_id": 1, "group_name": "Linen Shirt", "color": "Blue", "size": "M", "quantity": 2}
        ]


class TestSalesReport:
    def test_report_from_database(self, settings, stock_group):
        expense_service.create_expense({"date": "2026-10-19", "currency": "THB", "amount": "75"})

        report = reporting_service.sales_report(range_key="today", now=NOW, low_stock_threshold=2)

        assert report["base_currency"] == "THB"
        assert report["totals"]["THB"]["expenses"] == 75.0
        assert report["summary"]["total_transactions"] == 0
        assert report["stock"]["groups"] == 1
        assert report["stock"]["low_stock"][0]["color"] == "Blue"
